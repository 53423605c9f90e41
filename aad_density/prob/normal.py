# prob/normal.py
import numpy as np

from ..aad.core.partials import (
    OperandsAndPartials, VectorView, include_summand, length, max_size,
)
from ..aad.core.var import value_of
from .checks import check_finite, check_positive, check_consistent_sizes
from .constants import NEG_LOG_SQRT_TWO_PI


def normal_log(y, mu, sigma, propto: bool = False):
    """
    Log of the normal density N(y | mu, sigma), summed over all elements.
    Same argument conventions as double_exponential_log.
    """
    function = "normal_log"
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

        inv_sigma = 1.0 / sigma_dbl
        z = (y_dbl - mu_dbl) * inv_sigma

        if keep_const:
            logp += NEG_LOG_SQRT_TWO_PI
        if keep_sigma:
            logp -= np.log(sigma_dbl)
        logp -= 0.5 * z * z

        scaled = z * inv_sigma
        if d_y is not None:
            d_y[n] -= scaled
        if d_mu is not None:
            d_mu[n] += scaled
        if d_sigma is not None:
            d_sigma[n] += -inv_sigma + z * z * inv_sigma

    return ops.to_var(logp)
