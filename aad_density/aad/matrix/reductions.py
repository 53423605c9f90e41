# aad/matrix/reductions.py
"""
Scalar-valued functions of vectors and matrices.

Each reduction records a single node whose operands are all ADVar elements of
its input(s), however many elements there are. Zero-size inputs follow the
modelling language: mean/variance/sd raise DimensionError, min/max return
+inf/-inf, sum returns 0 and prod returns 1.

Subgradient convention at non-differentiable points: |x| has derivative 0 at
x == 0, and the whole adjoint of a max/min (or of the infinity norm) goes to
the first element attaining it.
"""
import numpy as np

from ..core.errors import DimensionError
from ..core.var import tape_of
from .base import (
    as_matrix, values, is_var_matrix, record_reduction,
    check_matrix, check_vector, check_nonzero_size, check_same_shape,
)


def _reduce(a, op_tag, val, partial):
    """Return val as a plain float for constant input, else one recorded node."""
    if not is_var_matrix(a):
        return np.float64(val)
    return record_reduction(tape_of(a), op_tag, val, [(a, partial)])


def sum(x):
    a = as_matrix(x)
    v = values(a)
    return _reduce(a, "sum", v.sum(), 1.0)


def prod(x):
    """Product of all elements; partials are products of all other elements."""
    a = as_matrix(x)
    v = values(a).ravel()
    if v.size == 0:
        return np.float64(1.0)
    if not is_var_matrix(a):
        return np.float64(np.prod(v))
    # prefix/suffix products keep the partials exact when elements are zero
    prefix = np.concatenate(([1.0], np.cumprod(v)[:-1]))
    suffix = np.concatenate((np.cumprod(v[::-1])[::-1][1:], [1.0]))
    return record_reduction(tape_of(a), "prod", np.prod(v), [(a, (prefix * suffix).reshape(a.shape))])


def mean(x):
    a = as_matrix(x)
    check_nonzero_size(a, "mean")
    v = values(a)
    return _reduce(a, "mean", v.mean(), 1.0 / v.size)


def variance(x):
    """Sample variance (n - 1 denominator); 0 for a single element."""
    a = as_matrix(x)
    check_nonzero_size(a, "variance")
    v = values(a)
    n = v.size
    if n == 1:
        return _reduce(a, "variance", 0.0, 0.0)
    diff = v - v.mean()
    return _reduce(a, "variance", np.dot(diff.ravel(), diff.ravel()) / (n - 1),
                   2.0 * diff / (n - 1))


def sd(x):
    """Sample standard deviation; 0 (with zero partials) when all elements agree."""
    a = as_matrix(x)
    check_nonzero_size(a, "sd")
    v = values(a)
    n = v.size
    if n == 1:
        return _reduce(a, "sd", 0.0, 0.0)
    diff = v - v.mean()
    s = np.sqrt(np.dot(diff.ravel(), diff.ravel()) / (n - 1))
    partial = diff / ((n - 1) * s) if s > 0 else np.zeros_like(diff)
    return _reduce(a, "sd", s, partial)


def max(x):
    """
    Largest element, or -inf for zero-size input. The element itself (handle
    or number) is returned, so no node is recorded.
    """
    a = as_matrix(x)
    if a.size == 0:
        return np.float64(-np.inf)
    k = int(np.argmax(values(a)))
    return a.flat[k] if is_var_matrix(a) else np.float64(a.flat[k])


def min(x):
    """Smallest element, or +inf for zero-size input (see max)."""
    a = as_matrix(x)
    if a.size == 0:
        return np.float64(np.inf)
    k = int(np.argmin(values(a)))
    return a.flat[k] if is_var_matrix(a) else np.float64(a.flat[k])


def log_sum_exp(x):
    """log(sum(exp(x))) without overflow; partials are softmax(x)."""
    a = as_matrix(x)
    v = values(a)
    if v.size == 0:
        return np.float64(-np.inf)
    m = np.max(v)
    if np.isneginf(m):
        return _reduce(a, "log_sum_exp", m, 0.0)
    if np.isposinf(m):
        # the +inf elements share the whole adjoint
        hit = np.isposinf(v)
        return _reduce(a, "log_sum_exp", m, hit / hit.sum())
    e = np.exp(v - m)
    s = e.sum()
    return _reduce(a, "log_sum_exp", m + np.log(s), e / s)


def dot_product(x, y):
    """Inner product of two equally sized vectors."""
    a = as_matrix(x)
    b = as_matrix(y)
    check_vector(a, "dot_product", "first argument")
    check_vector(b, "dot_product", "second argument")
    if a.size != b.size:
        raise DimensionError(f"dot_product: sizes {a.size} and {b.size} do not match")
    va = values(a)
    vb = values(b)
    val = np.dot(va.ravel(), vb.ravel())
    if not (is_var_matrix(a) or is_var_matrix(b)):
        return np.float64(val)
    return record_reduction(tape_of(a, b), "dot_product", val,
                            [(a, vb.reshape(a.shape)), (b, va.reshape(b.shape))])


def dot_self(x):
    """Sum of squares of a vector."""
    a = as_matrix(x)
    check_vector(a, "dot_self")
    v = values(a)
    return _reduce(a, "dot_self", np.dot(v.ravel(), v.ravel()), 2.0 * v)


def squared_norm(x):
    """Sum of squares of all elements of a vector or matrix."""
    a = as_matrix(x)
    v = values(a)
    return _reduce(a, "squared_norm", np.sum(v * v), 2.0 * v)


def norm(x):
    """Euclidean (Frobenius) norm; partials v / norm, 0 at the origin."""
    a = as_matrix(x)
    v = values(a)
    r = np.sqrt(np.sum(v * v))
    partial = v / r if r > 0 else np.zeros_like(v)
    return _reduce(a, "norm", r, partial)


def norm1(x):
    """Sum of absolute values; partials sign(v) with sign(0) == 0."""
    a = as_matrix(x)
    v = values(a)
    return _reduce(a, "norm1", np.sum(np.abs(v)), np.sign(v))


def norm_inf(x):
    """Largest absolute value; the first maximiser receives sign(v_k)."""
    a = as_matrix(x)
    v = values(a)
    if v.size == 0:
        return np.float64(0.0)
    k = int(np.argmax(np.abs(v)))
    partial = np.zeros(v.size)
    partial[k] = np.sign(v.flat[k])
    return _reduce(a, "norm_inf", np.abs(v.flat[k]), partial.reshape(v.shape))


def trace(m):
    """Sum of the diagonal of a matrix."""
    a = as_matrix(m)
    check_matrix(a, "trace")
    v = values(a)
    return _reduce(a, "trace", np.trace(v), np.eye(*v.shape))


def columns_dot_self(m):
    """1 x N row of the squared norms of each column of m."""
    a = as_matrix(m)
    check_matrix(a, "columns_dot_self")
    out = np.empty((1, a.shape[1]), dtype=a.dtype)
    for j in range(a.shape[1]):
        out[0, j] = dot_self(a[:, j])
    return out


def columns_dot_product(x, y):
    """1 x N row of the inner products of matching columns of x and y."""
    a = as_matrix(x)
    b = as_matrix(y)
    check_matrix(a, "columns_dot_product")
    check_same_shape(a, b, "columns_dot_product")
    dtype = object if (is_var_matrix(a) or is_var_matrix(b)) else np.float64
    out = np.empty((1, a.shape[1]), dtype=dtype)
    for j in range(a.shape[1]):
        out[0, j] = dot_product(a[:, j], b[:, j])
    return out
