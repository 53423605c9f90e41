# aad/core/partials.py
"""
Bulk accumulation of partial derivatives for density functions.

A log-density over (possibly vectorised, possibly constant) arguments is
computed in one elementwise loop. While the loop accumulates the value it also
accumulates, per argument element, the partial derivative of the result, and
at the end a single node is recorded whose operands are all differentiable
argument elements. However many scalar sub-expressions the formula has, the
tape grows by at most one node per call.

Typical use (normal log-density):

    y_vec, mu_vec, sigma_vec = VectorView(y), VectorView(mu), VectorView(sigma)
    ops = OperandsAndPartials(y, mu, sigma)
    d_y, d_mu, d_sigma = ops.partials
    logp = 0.0
    for n in range(max_size(y, mu, sigma)):
        ...
        if d_y is not None:
            d_y[n] -= z * inv_sigma
    return ops.finalize(logp)
"""
from __future__ import annotations
from typing import List, Optional

import numpy as np

from .var import ADVar, tape_of


def is_scalar(x) -> bool:
    return isinstance(x, ADVar) or np.ndim(x) == 0


def length(x) -> int:
    """1 for scalars, number of elements for sequences/arrays."""
    if isinstance(x, ADVar):
        return 1
    return 1 if np.ndim(x) == 0 else int(np.size(np.asarray(x, dtype=object)))


def max_size(*xs) -> int:
    return max(length(x) for x in xs)


def is_constant(x) -> bool:
    """True when `x` contains no ADVar (nothing to differentiate)."""
    if isinstance(x, ADVar):
        return False
    if isinstance(x, np.ndarray) and x.dtype != object:
        return True
    if np.ndim(x) == 0:
        return True
    return not any(isinstance(e, ADVar) for e in np.asarray(x, dtype=object).flat)


def include_summand(propto: bool, *xs) -> bool:
    """
    Whether a term depending on `xs` contributes to a log-density.

    With propto=False every term is kept. With propto=True (density only needed
    up to a constant) a term is dropped when all of its arguments are constant.
    """
    if not propto:
        return True
    return any(not is_constant(x) for x in xs)


class VectorView:
    """
    Index a scalar or a sequence uniformly: a scalar behaves like an
    infinitely repeating length-1 sequence, so view[n] is valid for any n.
    """

    __slots__ = ("_x", "_scalar")

    def __init__(self, x):
        self._scalar = is_scalar(x)
        if self._scalar:
            self._x = x
        elif isinstance(x, np.ndarray):
            self._x = x.ravel()
        else:
            self._x = np.asarray(x, dtype=object).ravel()

    def __getitem__(self, n):
        return self._x if self._scalar else self._x[n]

    def __len__(self):
        return 1 if self._scalar else len(self._x)


class PartialsView:
    """
    Per-element partial buffer of one argument. Writes to any index of a
    scalar argument accumulate into its single slot.
    """

    __slots__ = ("data", "_scalar")

    def __init__(self, data: np.ndarray, scalar: bool):
        self.data = data
        self._scalar = scalar

    def __getitem__(self, n):
        return self.data[0 if self._scalar else n]

    def __setitem__(self, n, v):
        self.data[0 if self._scalar else n] = v

    def __len__(self):
        return len(self.data)


class OperandsAndPartials:
    """
    Fused-node builder for one density/CDF evaluation.

    Attributes
    ----------
    operands : tuple
        The original arguments, in call order.
    partials : List[Optional[PartialsView]]
        One buffer per argument, None for arguments without ADVars. Buffers are
        zero-initialised views into the tape's scratch arena.
    tape : Optional[Tape]
        Tape shared by the ADVar arguments, None when every argument is constant.
    """

    def __init__(self, *operands):
        self.operands = operands
        self.tape = tape_of(*operands)
        self.partials: List[Optional[PartialsView]] = []
        for x in operands:
            if self.tape is None or is_constant(x):
                self.partials.append(None)
            else:
                buf = self.tape.scratch.alloc(length(x))
                self.partials.append(PartialsView(buf, is_scalar(x)))

    def finalize(self, value):
        """
        Turn the accumulated value into the call's result.

        With no differentiable argument the plain float64 is returned and the
        tape is not touched. Otherwise exactly one node is recorded whose
        operands are every ADVar element of every argument, each paired with
        its accumulated partial.
        """
        if self.tape is None:
            return np.float64(value)
        parents = []
        partials = []
        for x, d in zip(self.operands, self.partials):
            if d is None:
                continue
            elems = (x,) if isinstance(x, ADVar) else np.asarray(x, dtype=object).flat
            for k, e in enumerate(elems):
                if isinstance(e, ADVar):
                    parents.append(e.idx)
                    partials.append(d.data[k])
        return self.tape.push(value, parents, partials, "operands_and_partials")

    to_var = finalize
