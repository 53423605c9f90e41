# aad/core/errors.py
"""
Exception types raised by the AAD engine.

Shape problems are reported synchronously by the operation that detects them,
before anything is recorded on the tape. Numeric degeneracy (division by zero,
singular matrices, log of non-positive values) flows through values and
adjoints as inf/NaN, including a zero on the diagonal of a triangular solve.
Non-finite input to the eigenvalue solvers gives NaN rather than an error.
"""


class AADError(Exception):
    """Base class for all engine errors."""


class DimensionError(AADError, ValueError):
    """Operand shapes are incompatible with the requested operation."""


class DomainError(AADError, ValueError):
    """An argument value is rejected up-front (e.g. non-symmetric matrix)."""


class TapeCapacityError(AADError, MemoryError):
    """A fixed-capacity tape is full; the current evaluation is aborted."""


class StaleVariableError(AADError, RuntimeError):
    """An ADVar was used after the tape that issued it was reset."""


class TapeMismatchError(AADError, ValueError):
    """Operands of one operation live on different tapes."""
