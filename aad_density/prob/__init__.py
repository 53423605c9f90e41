"""
Log-densities and CDFs that record at most one node per call.

Arguments may be plain numbers, ADVars, or sequences/arrays of either; scalar
arguments broadcast against vector ones.
"""

from .checks import check_finite, check_positive, check_consistent_sizes
from .double_exponential import double_exponential_log, double_exponential_cdf
from .normal import normal_log

__all__ = [
    'check_finite', 'check_positive', 'check_consistent_sizes',
    'double_exponential_log', 'double_exponential_cdf',
    'normal_log',
]
