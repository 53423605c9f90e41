"""
Tape Configuration

Shared configuration for tapes: capacity limits, scratch-buffer sizing and the
tolerances used by the matrix nodes when they validate their inputs.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class TapeConfig:
    """Configuration for a Tape (uses defaults if None is passed)."""
    # Capacity
    max_nodes: Optional[int] = None     # None = grow without bound
    warn_nodes: Optional[int] = 5_000_000  # log a warning once past this size

    # Scratch buffer (per-element partials of fused nodes)
    scratch_block_size: int = 65536     # float64 slots in the first block

    # Safety
    check_stale: bool = True            # raise on ADVars from an old generation

    # Matrix input validation
    symmetry_tol: float = 1e-8          # absolute tolerance for symmetry checks

    def __post_init__(self):
        if self.max_nodes is not None and self.max_nodes <= 0:
            raise ValueError(f"max_nodes must be positive, got {self.max_nodes}")
        if self.scratch_block_size <= 0:
            raise ValueError(
                f"scratch_block_size must be positive, got {self.scratch_block_size}"
            )
        if self.symmetry_tol < 0:
            raise ValueError(f"symmetry_tol must be non-negative, got {self.symmetry_tol}")


DEFAULT_CONFIG = TapeConfig()
