# aad/core/engine.py
from __future__ import annotations
from typing import List, Sequence

import numpy as np

from .errors import TapeMismatchError
from .var import ADVar


def zero_adjoints(tape):
    """
    Set all adjoints (bar variables) on `tape` to zero.
    """
    for node in tape.nodes:
        node.adj = 0.0


def _sweep(nodes: List, start: int):
    """
    Backward sweep over nodes[start], nodes[start-1], ..., nodes[0].

    Every operand of a node was recorded before it, so when a node is reached
    all of its consumers have already pushed their contributions and its
    adjoint is final. No graph search is needed.
    """
    for i in range(start, -1, -1):
        node = nodes[i]
        if node.backward is not None:
            node.backward(nodes, node)
            continue
        adj = node.adj
        if adj == 0.0:
            continue  # nothing to propagate
        for p, a in zip(node.parents, node.partials):
            # Accumulate: p.adj += y.adj * (dy/dp)
            nodes[p].adj += adj * a


def reverse(y: ADVar, seed: float = 1.0):
    """
    Run a single reverse pass from `y`.

    Adjoints of independent variables ("input" nodes) accumulate across calls,
    so repeated passes add up; call zero_adjoints to clear them. Every other
    adjoint up to `y` is cleared before seeding, so intermediate nodes never
    carry contributions from an earlier pass.
    """
    node = y.node()
    nodes = y.tape.nodes
    for i in range(y.idx + 1):
        if nodes[i].op_tag != "input":
            nodes[i].adj = 0.0
    node.adj += float(seed)
    _sweep(nodes, y.idx)


def _check_inputs(tape, xs: Sequence):
    for x in xs:
        if isinstance(x, ADVar):
            if x.tape is not tape:
                raise TapeMismatchError("input variable belongs to a different tape than the output")
            x.node()  # stale check


def _as_list(xs) -> list:
    return list(xs.ravel()) if isinstance(xs, np.ndarray) else list(xs)


def _read_adjoints(xs: Sequence) -> np.ndarray:
    return np.array([x.node().adj if isinstance(x, ADVar) else 0.0 for x in xs],
                    dtype=np.float64)


def grad(y, xs: Sequence) -> np.ndarray:
    """
    Gradient of scalar `y` with respect to each element of `xs`.

    Args:
        y  : ADVar output (a plain number is treated as a constant).
        xs : sequence of ADVars (plain numbers get a zero partial).

    Returns:
        float64 array of dy/dx_i in the order of `xs`.

    All adjoints on the tape are zeroed, y is seeded with 1 and the tape is
    walked backwards starting at y (nodes recorded after y cannot depend on it
    being seeded, so they carry zero adjoints).
    """
    xs = _as_list(xs)
    if not isinstance(y, ADVar):
        return np.zeros(len(xs), dtype=np.float64)
    tape = y.tape
    _check_inputs(tape, xs)
    zero_adjoints(tape)
    reverse(y, seed=1.0)
    return _read_adjoints(xs)


def jacobian(ys: Sequence, xs: Sequence) -> np.ndarray:
    """
    Jacobian J[i, j] = d ys[i] / d xs[j].

    The forward graph is recorded once; each row runs its own reverse sweep
    with adjoints re-zeroed in between.
    """
    ys = _as_list(ys)
    xs = _as_list(xs)
    J = np.zeros((len(ys), len(xs)), dtype=np.float64)
    for i, y in enumerate(ys):
        J[i] = grad(y, xs)
    return J
