"""
aad_density: model log-densities with exact reverse-mode gradients.

Subpackages:
- aad  : tapes, ADVar handles, scalar/matrix operators, gradient traversal
- prob : density functions built on the bulk partials accumulator
"""

__version__ = "0.1.0"
