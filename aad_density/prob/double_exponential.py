# prob/double_exponential.py
"""
Double exponential (Laplace) distribution:

    DoubleExponential(y | mu, sigma) = exp(-|y - mu| / sigma) / (2 sigma),  sigma > 0
"""
import numpy as np

from ..aad.core.partials import (
    OperandsAndPartials, VectorView, include_summand, length, max_size,
)
from ..aad.core.var import value_of
from ..aad.ops.arithmetic import sub, div
from ..aad.ops.transcendental import exp
from .checks import check_finite, check_positive, check_consistent_sizes
from .constants import NEG_LOG_TWO


def double_exponential_log(y, mu, sigma, propto: bool = False):
    """
    Log of the double exponential density, summed over all elements.

    Args:
        y      : random variable(s)
        mu     : location parameter(s)
        sigma  : scale parameter(s), > 0
        propto : drop terms that do not depend on any ADVar argument

    Returns:
        float64 when no argument holds an ADVar, otherwise one ADVar recorded
        as a single node over every ADVar argument element.
    """
    function = "double_exponential_log"
    if not (length(y) and length(mu) and length(sigma)):
        return np.float64(0.0)

    check_finite(function, y, "Random variable")
    check_finite(function, mu, "Location parameter")
    check_finite(function, sigma, "Scale parameter")
    check_positive(function, sigma, "Scale parameter")
    check_consistent_sizes(function, (y, mu, sigma),
                           ("Random variable", "Location parameter", "Scale parameter"))

    if not include_summand(propto, y, mu, sigma):
        return np.float64(0.0)

    y_vec, mu_vec, sigma_vec = VectorView(y), VectorView(mu), VectorView(sigma)
    ops = OperandsAndPartials(y, mu, sigma)
    d_y, d_mu, d_sigma = ops.partials
    keep_const = include_summand(propto)
    keep_sigma = include_summand(propto, sigma)

    logp = 0.0
    for n in range(max_size(y, mu, sigma)):
        y_dbl = float(value_of(y_vec[n]))
        mu_dbl = float(value_of(mu_vec[n]))
        sigma_dbl = float(value_of(sigma_vec[n]))

        y_m_mu = y_dbl - mu_dbl
        fabs_y_m_mu = abs(y_m_mu)
        inv_sigma = 1.0 / sigma_dbl

        if keep_const:
            logp += NEG_LOG_TWO
        if keep_sigma:
            logp -= np.log(sigma_dbl)
        logp -= fabs_y_m_mu * inv_sigma

        # d|y - mu| is taken as 0 at y == mu
        if d_y is not None:
            if y_m_mu > 0:
                d_y[n] -= inv_sigma
            elif y_m_mu < 0:
                d_y[n] += inv_sigma
        if d_mu is not None:
            if y_m_mu > 0:
                d_mu[n] += inv_sigma
            elif y_m_mu < 0:
                d_mu[n] -= inv_sigma
        if d_sigma is not None:
            d_sigma[n] += -inv_sigma + fabs_y_m_mu * inv_sigma * inv_sigma

    return ops.to_var(logp)


def double_exponential_cdf(y, mu, sigma):
    """
    CDF of the double exponential distribution for scalar arguments:

        exp((y - mu) / sigma) / 2        if y < mu
        1 - exp((mu - y) / sigma) / 2    otherwise

    Built from scalar operators, so it records a handful of nodes.
    """
    function = "double_exponential_cdf"
    check_finite(function, y, "Random variable")
    check_finite(function, mu, "Location parameter")
    check_finite(function, sigma, "Scale parameter")
    check_positive(function, sigma, "Scale parameter")

    if value_of(y) < value_of(mu):
        return div(exp(div(sub(y, mu), sigma)), 2.0)
    return sub(1.0, div(exp(div(sub(mu, y), sigma)), 2.0))
