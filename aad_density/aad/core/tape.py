# aad/core/tape.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Callable, List, Optional, Sequence

import numpy as np

from ..config import TapeConfig
from .arena import ScratchArena
from .errors import TapeCapacityError
from .node import Node
from .var import ADVar

logger = logging.getLogger(__name__)


class Tape:
    """
    Records Nodes in forward (creation) order for one model evaluation.

    There is no global tape: every ADVar carries a reference to the tape that
    issued it, and operations record onto the tape of their operands. Parallel
    chains therefore simply own one Tape each.

    Lifecycle:
        tape = Tape()
        x = tape.var(1.5)
        y = exp(x) * x
        g = grad(y, [x])
        tape.reset()       # every ADVar issued so far is now stale
    """

    def __init__(self, config: Optional[TapeConfig] = None):
        self.config = config or TapeConfig()
        self.nodes: List[Node] = []
        self.scratch = ScratchArena(self.config.scratch_block_size)
        self.generation = 0
        self._warned = False

    def __len__(self):
        return len(self.nodes)

    def __repr__(self):
        return f"Tape(nodes={len(self.nodes)}, generation={self.generation})"

    def node_count(self) -> int:
        return len(self.nodes)

    def allocate_node(self, val, parents: Sequence[int] = (),
                      partials: Sequence[float] = (), *, op_tag: str,
                      backward: Optional[Callable] = None) -> int:
        """
        Append a Node and return its tape index.

        `parents` must only reference nodes already on this tape.
        """
        n = len(self.nodes)
        max_nodes = self.config.max_nodes
        if max_nodes is not None and n >= max_nodes:
            raise TapeCapacityError(
                f"tape capacity of {max_nodes} nodes exhausted while recording '{op_tag}'"
            )
        warn_nodes = self.config.warn_nodes
        if warn_nodes is not None and n >= warn_nodes and not self._warned:
            logger.warning("tape passed %d nodes; is it being reset between evaluations?",
                           warn_nodes)
            self._warned = True
        self.nodes.append(Node(op_tag, np.float64(val), parents, partials, backward))
        return n

    def push(self, val, parents: Sequence[int] = (), partials: Sequence[float] = (),
             op_tag: str = "op", backward: Optional[Callable] = None) -> ADVar:
        """Allocate a node and return a fresh handle to it."""
        return ADVar(self, self.allocate_node(val, parents, partials,
                                              op_tag=op_tag, backward=backward))

    def var(self, val, name: Optional[str] = None) -> ADVar:
        """Create an independent variable (a leaf node with no operands)."""
        return ADVar(self, self.allocate_node(val, op_tag="input"), name=name)

    def vars(self, vals) -> np.ndarray:
        """
        Create one independent variable per element of `vals`.

        Returns an object ndarray of ADVars with the shape of `vals`.
        """
        arr = np.asarray(vals, dtype=np.float64)
        out = np.empty(arr.shape, dtype=object)
        for k, v in enumerate(arr.flat):
            out.flat[k] = self.var(v)
        return out

    def reset(self) -> None:
        """
        Truncate the tape to zero length.

        No node is destroyed individually; the node list and scratch arena are
        rewound and the generation counter moves on, so handles issued before
        the reset are rejected from now on.
        """
        logger.debug("resetting tape: %d nodes, %d scratch slots in use",
                     len(self.nodes), self.scratch.slots_in_use)
        self.nodes.clear()
        self.scratch.reset()
        self.generation += 1
        self._warned = False


def new_evaluation(tape: Optional[Tape] = None,
                   config: Optional[TapeConfig] = None) -> Tape:
    """
    Acquire a tape for one model evaluation.

    Passing an existing tape resets and returns it, so a sampler can reuse one
    tape (and its already-grown storage) across iterations.
    """
    if tape is None:
        return Tape(config)
    tape.reset()
    return tape


@contextmanager
def use_tape(tape: Optional[Tape] = None):
    """
    Context manager scoping one evaluation:
        with use_tape() as tape:
            ... build computation ...
            g = grad(y, xs)
    The tape is reset on exit, so nothing recorded inside may escape as an ADVar.
    """
    tape = new_evaluation(tape)
    try:
        yield tape
    finally:
        tape.reset()
