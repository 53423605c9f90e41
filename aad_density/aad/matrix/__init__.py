# aad/matrix/__init__.py

"""
Matrix-valued operations on ADVars.

Matrices of ADVars are numpy object arrays; matrices of plain numbers are
float64 arrays and never touch a tape. Each operation records one fused node
(plus one output node per result element for matrix-valued results) with a
closed-form backward rule.

Elementwise helpers (add, subtract, exp, log, ...) shadow the scalar operators
of the same name in `aad.ops`; import them from this module explicitly.
"""

from .base import (
    as_matrix, values, to_var, rows, cols, col, row, transpose, diag_matrix,
)
from .elementwise import (
    add, subtract, minus, divide, elt_multiply, elt_divide, exp, log, softmax,
)
from .reductions import (
    sum, prod, mean, variance, sd, min, max, log_sum_exp,
    dot_product, dot_self, columns_dot_self, columns_dot_product,
    squared_norm, norm, norm1, norm_inf, trace,
)
from .linalg import (
    multiply, multiply_lower_tri_self_transpose, tcrossprod, crossprod,
    determinant, log_determinant, inverse,
    mdivide_left, mdivide_right, mdivide_left_tri,
)
from .decompositions import (
    cholesky_decompose, eigendecompose_sym, eigenvalues_sym, eigenvectors_sym,
    eigenvalues,
)

__all__ = [
    "as_matrix", "values", "to_var", "rows", "cols", "col", "row", "transpose", "diag_matrix",
    "add", "subtract", "minus", "divide", "elt_multiply", "elt_divide", "exp", "log", "softmax",
    "sum", "prod", "mean", "variance", "sd", "min", "max", "log_sum_exp",
    "dot_product", "dot_self", "columns_dot_self", "columns_dot_product",
    "squared_norm", "norm", "norm1", "norm_inf", "trace",
    "multiply", "multiply_lower_tri_self_transpose", "tcrossprod", "crossprod",
    "determinant", "log_determinant", "inverse",
    "mdivide_left", "mdivide_right", "mdivide_left_tri",
    "cholesky_decompose", "eigendecompose_sym", "eigenvalues_sym", "eigenvectors_sym",
    "eigenvalues",
]
