# aad/ops/transcendental.py
import numpy as np
from scipy.special import expit, logit as _logit
from .arithmetic import _unary


def exp(x):
    return _unary(x, np.exp, lambda a, o: o, "exp")


def log(x):
    return _unary(x, np.log, lambda a, o: 1.0 / a, "log")


def sqrt(x):
    return _unary(x, np.sqrt, lambda a, o: 0.5 / o, "sqrt")


def log1p(x):
    return _unary(x, np.log1p, lambda a, o: 1.0 / (1.0 + a), "log1p")


def expm1(x):
    return _unary(x, np.expm1, lambda a, o: o + 1.0, "expm1")


def sin(x):
    return _unary(x, np.sin, lambda a, o: np.cos(a), "sin")


def cos(x):
    return _unary(x, np.cos, lambda a, o: -np.sin(a), "cos")


def tan(x):
    return _unary(x, np.tan, lambda a, o: 1.0 + o * o, "tan")


def tanh(x):
    return _unary(x, np.tanh, lambda a, o: 1.0 - o * o, "tanh")


def inv_logit(x):
    """
    Logistic sigmoid 1 / (1 + exp(-x)).
    d/dx = out * (1 - out)
    """
    return _unary(x, expit, lambda a, o: o * (1.0 - o), "inv_logit")


def logit(x):
    """
    log(x / (1 - x)).
    d/dx = 1 / (x * (1 - x))
    """
    return _unary(x, _logit, lambda a, o: 1.0 / (a * (1.0 - a)), "logit")


def log1p_exp(x):
    """
    log(1 + exp(x)), evaluated without overflow for large x.
    d/dx = inv_logit(x)
    """
    return _unary(x, lambda a: np.logaddexp(0.0, a), lambda a, o: expit(a), "log1p_exp")
