# aad/ops/special.py
import numpy as np
from scipy import special as sp
from .arithmetic import _unary

SQRT_TWO_PI = np.sqrt(2.0 * np.pi)
TWO_OVER_SQRT_PI = 2.0 / np.sqrt(np.pi)


def norm_pdf(x):
    return np.exp(-0.5 * x * x) / SQRT_TWO_PI


def norm_cdf(x):
    """
    Standard normal CDF Phi(x); records local partial dPhi/dx = phi(x).
    """
    return _unary(x, sp.ndtr, lambda a, o: norm_pdf(a), "norm_cdf")


Phi = norm_cdf


def erf(x):
    """
    Error function: erf(x) = (2/sqrt(pi)) * int_0^x e^(-t^2) dt

    Derivative: d/dx erf(x) = (2/sqrt(pi)) * e^(-x^2)
    """
    return _unary(x, sp.erf, lambda a, o: TWO_OVER_SQRT_PI * np.exp(-a * a), "erf")


def erfc(x):
    return _unary(x, sp.erfc, lambda a, o: -TWO_OVER_SQRT_PI * np.exp(-a * a), "erfc")


def lgamma(x):
    """log|Gamma(x)|; derivative is digamma(x)."""
    return _unary(x, sp.gammaln, lambda a, o: sp.psi(a), "lgamma")


def digamma(x):
    """digamma(x); derivative is trigamma(x) = polygamma(1, x)."""
    return _unary(x, sp.psi, lambda a, o: float(sp.polygamma(1, a)), "digamma")
