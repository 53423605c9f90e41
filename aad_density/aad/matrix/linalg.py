# aad/matrix/linalg.py
"""
Matrix products, inverse, determinant and linear solves.

Every operation here keeps the whole computation in one closed-form backward
rule (record_reduction for scalar results, record_fused for matrix results)
instead of expanding it into a scalar sub-graph. Singular systems are not
errors: the LU factorisation simply produces inf/NaN values and adjoints.
"""
import warnings

import numpy as np
import scipy.linalg as la

from ..core.errors import DimensionError
from ..core.var import tape_of
from .base import (
    as_matrix, values, is_var_matrix, record_reduction, record_fused,
    check_matrix, check_square,
)
from .elementwise import elt_multiply
from .reductions import dot_product


def _lu(v: np.ndarray):
    """LU factors of a square matrix; an exactly singular one is not rejected."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", la.LinAlgWarning)
        return la.lu_factor(v, check_finite=False)


def _lu_solve(lu, rhs: np.ndarray, trans: int = 0) -> np.ndarray:
    with np.errstate(all="ignore"):
        return la.lu_solve(lu, rhs, trans=trans, check_finite=False)


def _inv(v: np.ndarray) -> np.ndarray:
    return _lu_solve(_lu(v), np.eye(v.shape[0]))


def _tri_solve(t: np.ndarray, rhs: np.ndarray, lower: bool, trans: bool = False) -> np.ndarray:
    """
    Solve with one triangle of t (or its transpose). A zero on the diagonal
    is not rejected: substitution runs on and yields inf/NaN.
    """
    if np.all(np.diag(t) != 0):
        return la.solve_triangular(t, rhs, lower=lower, trans="T" if trans else "N",
                                   check_finite=False)
    t = np.tril(t) if lower else np.triu(t)
    if trans:
        t, lower = t.T, not lower
    x = np.array(rhs, dtype=np.float64)
    n = t.shape[0]
    with np.errstate(all="ignore"):
        for i in (range(n) if lower else range(n - 1, -1, -1)):
            done = slice(0, i) if lower else slice(i + 1, n)
            x[i] = (x[i] - t[i, done] @ x[done]) / t[i, i]
    return x


def _as_column(a: np.ndarray) -> np.ndarray:
    return a.reshape(-1, 1) if a.ndim == 1 else a


# ----------------------------- products ----------------------------- #
def multiply(x, y):
    """
    Product with numpy `@` semantics.

    A scalar operand multiplies elementwise; two vectors give their dot
    product; a 1-D operand is promoted to a row (left) or column (right)
    vector and the promoted axis is dropped from the result.
    """
    a = as_matrix(x)
    b = as_matrix(y)
    if a.ndim == 0 or b.ndim == 0:
        return elt_multiply(a, b)
    if a.ndim == 1 and b.ndim == 1:
        return dot_product(a, b)
    if a.ndim > 2 or b.ndim > 2:
        raise DimensionError(f"multiply: operands must be at most 2-dimensional, got {a.shape} and {b.shape}")
    a2 = a.reshape(1, -1) if a.ndim == 1 else a
    b2 = b.reshape(-1, 1) if b.ndim == 1 else b
    if a2.shape[1] != b2.shape[0]:
        raise DimensionError(f"multiply: inner dimensions of {a.shape} and {b.shape} do not agree")
    va = values(a2)
    vb = values(b2)
    c = va @ vb
    out_shape = (values(a) @ values(b)).shape
    if not (is_var_matrix(a) or is_var_matrix(b)):
        return c.reshape(out_shape)

    def adjoint(out_adj):
        cb = out_adj[0]
        return [cb @ vb.T, va.T @ cb]

    out = record_fused(tape_of(a, b), "multiply", [a2, b2], [c], adjoint)[0]
    return out.reshape(out_shape)


def multiply_lower_tri_self_transpose(m):
    """L L^T using only the lower triangle of m."""
    a = as_matrix(m)
    check_matrix(a, "multiply_lower_tri_self_transpose")
    lt = np.tril(values(a))
    c = lt @ lt.T
    if not is_var_matrix(a):
        return c

    def adjoint(out_adj):
        cb = out_adj[0]
        return [np.tril((cb + cb.T) @ lt)]

    return record_fused(tape_of(a), "multiply_lower_tri_self_transpose", [a], [c], adjoint)[0]


def tcrossprod(m):
    """M M^T."""
    a = as_matrix(m)
    check_matrix(a, "tcrossprod")
    v = values(a)
    c = v @ v.T
    if not is_var_matrix(a):
        return c

    def adjoint(out_adj):
        cb = out_adj[0]
        return [(cb + cb.T) @ v]

    return record_fused(tape_of(a), "tcrossprod", [a], [c], adjoint)[0]


def crossprod(m):
    """M^T M."""
    a = as_matrix(m)
    check_matrix(a, "crossprod")
    v = values(a)
    c = v.T @ v
    if not is_var_matrix(a):
        return c

    def adjoint(out_adj):
        cb = out_adj[0]
        return [v @ (cb + cb.T)]

    return record_fused(tape_of(a), "crossprod", [a], [c], adjoint)[0]


# ----------------------------- determinant / inverse ----------------------------- #
def determinant(m):
    """
    det(A) as a single node with partials det(A) * inv(A)^T.
    """
    a = as_matrix(m)
    check_square(a, "determinant")
    v = values(a)
    if v.shape[0] == 0:
        return np.float64(1.0)
    det = np.linalg.det(v)
    if not is_var_matrix(a):
        return np.float64(det)
    with np.errstate(all="ignore"):
        partial = det * _inv(v).T
    return record_reduction(tape_of(a), "determinant", det, [(a, partial)])


def log_determinant(m):
    """log|det(A)| with partials inv(A)^T."""
    a = as_matrix(m)
    check_square(a, "log_determinant")
    v = values(a)
    if v.shape[0] == 0:
        return np.float64(0.0)
    _, logdet = np.linalg.slogdet(v)
    if not is_var_matrix(a):
        return np.float64(logdet)
    return record_reduction(tape_of(a), "log_determinant", logdet, [(a, _inv(v).T)])


def inverse(m):
    """
    Matrix inverse. Backward: Abar = -Ainv^T Cbar Ainv^T.
    A singular matrix gives inf/NaN entries rather than an exception.
    """
    a = as_matrix(m)
    check_square(a, "inverse")
    v = values(a)
    ainv = _inv(v) if v.size else np.zeros_like(v)
    if not is_var_matrix(a):
        return ainv

    def adjoint(out_adj):
        with np.errstate(all="ignore"):
            return [-ainv.T @ out_adj[0] @ ainv.T]

    return record_fused(tape_of(a), "inverse", [a], [ainv], adjoint)[0]


# ----------------------------- solves ----------------------------- #
def mdivide_left(x, y):
    """
    A^-1 B. Backward: Bbar = A^-T Cbar, Abar = -Bbar C^T.
    """
    a = as_matrix(x)
    b = as_matrix(y)
    check_square(a, "mdivide_left", "A")
    if b.ndim not in (1, 2) or b.shape[0] != a.shape[0]:
        raise DimensionError(f"mdivide_left: B of shape {b.shape} does not match A of shape {a.shape}")
    va = values(a)
    vb = _as_column(values(b))
    lu = _lu(va)
    c = _lu_solve(lu, vb)
    if not (is_var_matrix(a) or is_var_matrix(b)):
        return c.reshape(b.shape)

    def adjoint(out_adj):
        bbar = _lu_solve(lu, out_adj[0], trans=1)
        with np.errstate(all="ignore"):
            return [-bbar @ c.T, bbar]

    out = record_fused(tape_of(a, b), "mdivide_left", [a, _as_column(b)], [c], adjoint)[0]
    return out.reshape(b.shape)


def mdivide_right(x, y):
    """
    B A^-1. Backward: Bbar = Cbar A^-T, Abar = -C^T Bbar.
    """
    b = as_matrix(x)
    a = as_matrix(y)
    check_square(a, "mdivide_right", "A")
    if b.ndim not in (1, 2) or b.shape[-1] != a.shape[0]:
        raise DimensionError(f"mdivide_right: B of shape {b.shape} does not match A of shape {a.shape}")
    b2 = b.reshape(1, -1) if b.ndim == 1 else b
    va = values(a)
    vb = values(b2)
    lu = _lu(va)
    # C A = B  <=>  A^T C^T = B^T
    c = _lu_solve(lu, vb.T, trans=1).T
    if not (is_var_matrix(a) or is_var_matrix(b)):
        return c.reshape(b.shape)

    def adjoint(out_adj):
        bbar = _lu_solve(lu, out_adj[0].T).T
        with np.errstate(all="ignore"):
            return [bbar, -c.T @ bbar]

    out = record_fused(tape_of(a, b), "mdivide_right", [b2, a], [c], adjoint)[0]
    return out.reshape(b.shape)


def mdivide_left_tri(x, y, lower: bool = True):
    """
    Triangular solve A^-1 B reading only one triangle of A.

    The adjoint of A is masked to the same triangle, so entries of A outside
    it never receive a gradient. A zero on the diagonal gives inf/NaN values
    and adjoints.
    """
    a = as_matrix(x)
    b = as_matrix(y)
    check_square(a, "mdivide_left_tri", "A")
    if b.ndim not in (1, 2) or b.shape[0] != a.shape[0]:
        raise DimensionError(f"mdivide_left_tri: B of shape {b.shape} does not match A of shape {a.shape}")
    va = values(a)
    vb = _as_column(values(b))
    c = _tri_solve(va, vb, lower)
    if not (is_var_matrix(a) or is_var_matrix(b)):
        return c.reshape(b.shape)
    tri = np.tril if lower else np.triu

    def adjoint(out_adj):
        bbar = _tri_solve(va, out_adj[0], lower, trans=True)
        with np.errstate(all="ignore"):
            return [tri(-bbar @ c.T), bbar]

    out = record_fused(tape_of(a, b), "mdivide_left_tri", [a, _as_column(b)], [c], adjoint)[0]
    return out.reshape(b.shape)
