# prob/checks.py
"""
Argument checks shared by the density functions.

Each check raises before anything is recorded on a tape: DomainError for bad
values, DimensionError for vector arguments of different lengths.
"""
import numpy as np

from ..aad.core.errors import DimensionError, DomainError
from ..aad.core.partials import is_scalar, length
from ..aad.core.var import value_of


def _values(x) -> np.ndarray:
    return np.atleast_1d(np.asarray(value_of(x), dtype=np.float64))


def check_finite(function: str, x, name: str):
    v = _values(x)
    if not np.all(np.isfinite(v)):
        bad = v[~np.isfinite(v)][0]
        raise DomainError(f"{function}: {name} is {bad}, but must be finite")


def check_positive(function: str, x, name: str):
    v = _values(x)
    # NaN fails this check as well
    if not np.all(v > 0):
        bad = v[~(v > 0)][0]
        raise DomainError(f"{function}: {name} is {bad}, but must be > 0")


def check_consistent_sizes(function: str, args, names):
    """All non-scalar arguments must have the same length."""
    expected = None
    for x, name in zip(args, names):
        if is_scalar(x):
            continue
        n = length(x)
        if expected is None:
            expected = (n, name)
        elif n != expected[0]:
            raise DimensionError(
                f"{function}: size of {name} ({n}) does not match "
                f"size of {expected[1]} ({expected[0]})"
            )
