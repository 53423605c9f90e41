# aad/ops/__init__.py

# Convenience re-exports so users can do: from aad_density.aad.ops import mul, exp, ...
from .arithmetic import add, sub, mul, div, neg, pow, square, fabs, fmax, fmin, hypot
from .transcendental import (
    exp, log, sqrt, log1p, expm1, sin, cos, tan, tanh,
    inv_logit, logit, log1p_exp,
)
from .special import norm_cdf, Phi, erf, erfc, lgamma, digamma

__all__ = [
    "add", "sub", "mul", "div", "neg", "pow", "square", "fabs", "fmax", "fmin", "hypot",
    "exp", "log", "sqrt", "log1p", "expm1", "sin", "cos", "tan", "tanh",
    "inv_logit", "logit", "log1p_exp",
    "norm_cdf", "Phi", "erf", "erfc", "lgamma", "digamma",
]
