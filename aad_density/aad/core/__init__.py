# aad/core/__init__.py

"""
Core public API for the AAD package.

Exports:
    ADVar            : Handle to one node on a tape.
    Tape             : Append-only node store for one evaluation.
    new_evaluation   : Acquire (or reset and reuse) a tape.
    use_tape         : Context manager scoping one evaluation.
    grad, jacobian   : Reverse sweeps producing gradients / Jacobians.
    reverse          : Run a single reverse pass to accumulate first-order adjoints.
    zero_adjoints    : Reset all adjoints on a tape to zero.
    value_of         : Extract the primal value(s) from ADVars.
    OperandsAndPartials, VectorView : Bulk accumulator for density functions.
"""

from .errors import (
    AADError, DimensionError, DomainError, TapeCapacityError,
    StaleVariableError, TapeMismatchError,
)
from .var import ADVar, value_of, tape_of
from .tape import Tape, new_evaluation, use_tape
from .engine import reverse, zero_adjoints, grad, jacobian
from .partials import (
    OperandsAndPartials, VectorView, PartialsView,
    include_summand, is_constant, length, max_size,
)
from .seeds import value, grad_of, grads, grads_list, jacobian_of

__all__ = [
    "AADError", "DimensionError", "DomainError", "TapeCapacityError",
    "StaleVariableError", "TapeMismatchError",
    "ADVar", "value_of", "tape_of",
    "Tape", "new_evaluation", "use_tape",
    "reverse", "zero_adjoints", "grad", "jacobian",
    "OperandsAndPartials", "VectorView", "PartialsView",
    "include_summand", "is_constant", "length", "max_size",
    "value", "grad_of", "grads", "grads_list", "jacobian_of",
]
