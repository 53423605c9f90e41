# aad/matrix/decompositions.py
"""
Cholesky and eigen decompositions with closed-form adjoints.

numpy reads only the lower triangle of a symmetric input (np.linalg.cholesky,
np.linalg.eigh with UPLO="L"), so the symmetric adjoint is folded onto the
lower triangle: Abar[i, j] = S[i, j] + S[j, i] below the diagonal, S[i, i] on
it, and zero above. An ADVar shared by both A[i, j] and A[j, i] therefore
receives the full symmetric derivative.
"""
import numpy as np
import scipy.linalg as la

from ..config import DEFAULT_CONFIG
from ..core.errors import DomainError
from ..core.var import tape_of
from .base import as_matrix, values, is_var_matrix, record_fused, check_square


def _fold_lower(s: np.ndarray) -> np.ndarray:
    return np.tril(s + s.T, -1) + np.diag(np.diag(s))


def _symmetry_tol(a) -> float:
    tape = tape_of(a)
    return (tape.config if tape is not None else DEFAULT_CONFIG).symmetry_tol


def check_symmetric(a: np.ndarray, v: np.ndarray, fn: str):
    tol = _symmetry_tol(a)
    if v.size and np.max(np.abs(v - v.T)) > tol:
        raise DomainError(f"{fn}: matrix is not symmetric (tolerance {tol})")


def cholesky_decompose(m):
    """
    Lower Cholesky factor L of a symmetric positive-definite matrix.

    Backward (Murray 2016): P = Phi(L^T Lbar) with Phi taking the lower
    triangle and halving the diagonal, S = L^-T P L^-1, folded onto the
    lower triangle of A.
    """
    a = as_matrix(m)
    check_square(a, "cholesky_decompose")
    v = values(a)
    if np.isnan(v).any():
        raise DomainError("cholesky_decompose: matrix contains NaN")
    check_symmetric(a, v, "cholesky_decompose")
    if v.size == 0:
        return v.copy()
    try:
        L = np.linalg.cholesky(v)
    except np.linalg.LinAlgError as exc:
        raise DomainError(f"cholesky_decompose: matrix is not positive definite ({exc})") from exc
    if not is_var_matrix(a):
        return L

    def adjoint(out_adj):
        lbar = np.tril(out_adj[0])
        P = np.tril(L.T @ lbar)
        P[np.diag_indices_from(P)] *= 0.5
        # S = L^-T P L^-1, as two triangular solves
        Y = la.solve_triangular(L, P.T, lower=True, trans="T").T
        S = la.solve_triangular(L, Y, lower=True, trans="T")
        return [_fold_lower(S)]

    mask = np.tril(np.ones(L.shape, dtype=bool))
    return record_fused(tape_of(a), "cholesky_decompose", [a], [L], adjoint, out_masks=[mask])[0]


def _eigh(m, fn):
    a = as_matrix(m)
    check_square(a, fn)
    v = values(a)
    check_symmetric(a, v, fn)
    if not np.all(np.isfinite(v)):
        n = v.shape[0]
        return a, np.full(n, np.nan), np.full((n, n), np.nan)
    w, V = np.linalg.eigh(v)
    return a, w, V


def _eigh_adjoint(w, V, wbar, Vbar):
    """V (diag(wbar) + F o (V^T Vbar)) V^T with F[i, j] = 1 / (w[j] - w[i])."""
    inner = np.diag(wbar)
    if Vbar is not None and Vbar.any():
        with np.errstate(divide="ignore", invalid="ignore"):
            F = 1.0 / (w[None, :] - w[:, None])
        np.fill_diagonal(F, 0.0)
        inner = inner + F * (V.T @ Vbar)
    return _fold_lower(V @ inner @ V.T)


def eigendecompose_sym(m):
    """
    (eigenvalues ascending, eigenvectors as columns) of a symmetric matrix.
    Both outputs share one fused node.
    """
    a, w, V = _eigh(m, "eigendecompose_sym")
    if not is_var_matrix(a):
        return w, V

    def adjoint(out_adj):
        return [_eigh_adjoint(w, V, out_adj[0], out_adj[1])]

    vals, vecs = record_fused(tape_of(a), "eigendecompose_sym", [a], [w, V], adjoint)
    return vals, vecs


def eigenvalues_sym(m):
    """Eigenvalues of a symmetric matrix in ascending order."""
    a, w, V = _eigh(m, "eigenvalues_sym")
    if not is_var_matrix(a):
        return w

    def adjoint(out_adj):
        return [_eigh_adjoint(w, V, out_adj[0], None)]

    return record_fused(tape_of(a), "eigenvalues_sym", [a], [w], adjoint)[0]


def eigenvectors_sym(m):
    """Eigenvectors (as columns) of a symmetric matrix, ordered by eigenvalue."""
    a, w, V = _eigh(m, "eigenvectors_sym")
    if not is_var_matrix(a):
        return V

    def adjoint(out_adj):
        return [_eigh_adjoint(w, V, np.zeros_like(w), out_adj[0])]

    return record_fused(tape_of(a), "eigenvectors_sym", [a], [V], adjoint)[0]


def eigenvalues(m):
    """
    Eigenvalues of a general real matrix with a real spectrum, sorted
    ascending. dlambda_i / dA = u_i v_i^T / (u_i . v_i) with u_i, v_i the
    left and right eigenvectors. A complex spectrum raises DomainError;
    non-finite input gives NaN eigenvalues and adjoints.
    """
    a = as_matrix(m)
    check_square(a, "eigenvalues")
    v = values(a)
    n = v.shape[0]
    if np.all(np.isfinite(v)):
        w, vl, vr = la.eig(v, left=True, right=True, check_finite=False)
        if np.any(w.imag != 0):
            raise DomainError("eigenvalues: matrix has complex eigenvalues")
        order = np.argsort(w.real, kind="stable")
        w = w.real[order]
        vl = vl.real[:, order]
        vr = vr.real[:, order]
    else:
        w = np.full(n, np.nan)
        vl = vr = np.full((n, n), np.nan)
    if not is_var_matrix(a):
        return w

    def adjoint(out_adj):
        wbar = out_adj[0]
        scale = wbar / np.sum(vl * vr, axis=0)
        return [(vl * scale) @ vr.T]

    return record_fused(tape_of(a), "eigenvalues", [a], [w], adjoint)[0]
