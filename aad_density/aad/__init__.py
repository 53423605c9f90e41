# aad/__init__.py
# Reverse-mode automatic differentiation on explicit tapes

from .config import TapeConfig
from .core.errors import (
    AADError, DimensionError, DomainError, TapeCapacityError,
    StaleVariableError, TapeMismatchError,
)
from .core.var import ADVar, value_of
from .core.tape import Tape, new_evaluation, use_tape
from .core.engine import reverse, zero_adjoints, grad, jacobian
from .core.partials import OperandsAndPartials, VectorView
from .core.seeds import grad_of, grads, grads_list, jacobian_of

# Scalar operators and matrix operations
from . import ops
from . import matrix

__all__ = [
    # Config / errors
    'TapeConfig',
    'AADError', 'DimensionError', 'DomainError', 'TapeCapacityError',
    'StaleVariableError', 'TapeMismatchError',
    # Core
    'ADVar',
    'value_of',
    'Tape',
    'new_evaluation',
    'use_tape',
    # Engine
    'reverse',
    'zero_adjoints',
    'grad',
    'jacobian',
    'grad_of',
    'grads',
    'grads_list',
    'jacobian_of',
    # Bulk accumulator
    'OperandsAndPartials',
    'VectorView',
    # Submodules
    'ops',
    'matrix',
]
