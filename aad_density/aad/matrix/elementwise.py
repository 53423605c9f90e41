# aad/matrix/elementwise.py
"""
Elementwise matrix arithmetic.

Constant operands are handled by numpy directly. Otherwise each element goes
through the scalar operator, so each result element is its own node; a
scalar operand is broadcast against the matrix.
"""
import numpy as np

from ..core.errors import DimensionError
from ..core.var import tape_of
from ..ops import arithmetic, transcendental
from .base import (
    as_matrix, values, is_var_matrix, record_fused,
    check_vector, check_nonzero_size,
)


def _pair(x, y, fn):
    a = as_matrix(x)
    b = as_matrix(y)
    if a.ndim and b.ndim and a.shape != b.shape:
        raise DimensionError(f"{fn}: shapes {a.shape} and {b.shape} do not match")
    return a, b


def _map2(a, b, scalar_op):
    tape_of(a, b)
    shape = a.shape if a.ndim else b.shape
    xa = np.broadcast_to(a, shape)
    xb = np.broadcast_to(b, shape)
    out = np.empty(shape, dtype=object)
    for k in range(out.size):
        out.flat[k] = scalar_op(xa.flat[k], xb.flat[k])
    return out[()] if out.ndim == 0 else out


def _map1(a, scalar_op):
    out = np.empty(a.shape, dtype=object)
    for k in range(out.size):
        out.flat[k] = scalar_op(a.flat[k])
    return out[()] if out.ndim == 0 else out


def _elementwise2(x, y, fn, scalar_op, numpy_op):
    a, b = _pair(x, y, fn)
    if not (is_var_matrix(a) or is_var_matrix(b)):
        return numpy_op(a, b)
    return _map2(a, b, scalar_op)


def _elementwise1(x, scalar_op, numpy_op):
    a = as_matrix(x)
    if not is_var_matrix(a):
        return numpy_op(a)
    return _map1(a, scalar_op)


def add(x, y):
    return _elementwise2(x, y, "add", arithmetic.add, np.add)


def subtract(x, y):
    return _elementwise2(x, y, "subtract", arithmetic.sub, np.subtract)


def elt_multiply(x, y):
    return _elementwise2(x, y, "elt_multiply", arithmetic.mul, np.multiply)


def elt_divide(x, y):
    return _elementwise2(x, y, "elt_divide", arithmetic.div, np.divide)


def divide(m, c):
    """Matrix divided by a scalar."""
    if np.ndim(c) != 0:
        raise DimensionError(f"divide: divisor must be a scalar, got shape {np.shape(c)}")
    return _elementwise2(m, c, "divide", arithmetic.div, np.divide)


def minus(x):
    return _elementwise1(x, arithmetic.neg, np.negative)


def exp(x):
    return _elementwise1(x, transcendental.exp, np.exp)


def log(x):
    return _elementwise1(x, transcendental.log, np.log)


def softmax(v):
    """
    exp(v) / sum(exp(v)) for a non-empty vector.

    Recorded as one fused node; the backward rule is
    vbar = theta * (thetabar - theta . thetabar).
    """
    a = as_matrix(v)
    check_vector(a, "softmax")
    check_nonzero_size(a, "softmax")
    va = values(a)
    e = np.exp(va - va.max())
    theta = e / e.sum()
    if not is_var_matrix(a):
        return theta

    def adjoint(out_adj):
        tb = out_adj[0]
        return [theta * (tb - np.sum(theta * tb))]

    return record_fused(tape_of(a), "softmax", [a], [theta], adjoint)[0]
