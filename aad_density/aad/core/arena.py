# aad/core/arena.py
from __future__ import annotations
import logging
from typing import List

import numpy as np

logger = logging.getLogger(__name__)


class ScratchArena:
    """
    Bump allocator for operation-local float64 temporaries.

    Memory is handed out as views into a list of blocks. When the current block
    cannot hold a request, the allocator moves to the next block (allocating a
    new one of at least twice the previous size if needed). `reset()` rewinds
    to the first block without freeing anything, so a steady-state evaluation
    loop allocates no new memory at all.

    Views returned before a reset alias memory that later allocations reuse;
    they must not be read after the owning tape is reset.
    """

    def __init__(self, block_size: int = 65536):
        self._blocks: List[np.ndarray] = [np.empty(block_size, dtype=np.float64)]
        self._cur = 0
        self._used = 0

    def alloc(self, n: int) -> np.ndarray:
        """Return a zero-filled float64 view of length n."""
        block = self._blocks[self._cur]
        if self._used + n > block.size:
            block = self._next_block(n)
        out = block[self._used:self._used + n]
        self._used += n
        out.fill(0.0)
        return out

    def _next_block(self, n: int) -> np.ndarray:
        self._cur += 1
        self._used = 0
        while self._cur < len(self._blocks) and self._blocks[self._cur].size < n:
            self._cur += 1
        if self._cur == len(self._blocks):
            size = max(2 * self._blocks[-1].size, n)
            self._blocks.append(np.empty(size, dtype=np.float64))
            logger.debug("scratch arena grew to %d blocks (%d slots in new block)",
                         len(self._blocks), size)
        return self._blocks[self._cur]

    def reset(self) -> None:
        self._cur = 0
        self._used = 0

    @property
    def slots_in_use(self) -> int:
        return sum(b.size for b in self._blocks[:self._cur]) + self._used

    @property
    def slots_allocated(self) -> int:
        return sum(b.size for b in self._blocks)
