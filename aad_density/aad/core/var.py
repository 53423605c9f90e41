# aad/core/var.py
from __future__ import annotations
from typing import Optional

import numpy as np

from .errors import StaleVariableError, TapeMismatchError


class ADVar:
    """
    Handle to one node on a tape (reverse-mode AD variable).

    An ADVar is a lightweight value: the tape it belongs to, the node index and
    the tape generation it was issued in. Copying a handle never copies or
    mutates the node, and any number of handles may share one node.

    Attributes
    ----------
    tape : Tape
        Tape holding the node.
    idx : int
        Index of the node on the tape.
    gen : int
        Tape generation at creation; a mismatch means the tape was reset.
    name : Optional[str]
        Optional debug/pretty-print name.
    """

    __slots__ = ("tape", "idx", "gen", "name")

    # make NumPy scalars/arrays defer binary operators to ADVar
    __array_ufunc__ = None

    def __init__(self, tape, idx: int, name: Optional[str] = None):
        self.tape = tape
        self.idx = idx
        self.gen = tape.generation
        self.name = name

    def node(self):
        tape = self.tape
        if self.gen != tape.generation and tape.config.check_stale:
            raise StaleVariableError(
                f"ADVar(idx={self.idx}) was issued in tape generation {self.gen}, "
                f"tape is at generation {tape.generation}"
            )
        return tape.nodes[self.idx]

    @property
    def val(self):
        return self.node().val

    @property
    def adj(self):
        return self.node().adj

    def grad(self, xs):
        """Gradient of this variable with respect to `xs` (see engine.grad)."""
        from .engine import grad
        return grad(self, xs)

    def __repr__(self):
        name = f", name={self.name!r}" if self.name else ""
        return f"ADVar({self.val!r}, idx={self.idx}{name})"

    def __float__(self):
        return float(self.val)

    # Comparisons act on values and never record anything
    def __lt__(self, other):
        return self.val < value_of(other)

    def __le__(self, other):
        return self.val <= value_of(other)

    def __gt__(self, other):
        return self.val > value_of(other)

    def __ge__(self, other):
        return self.val >= value_of(other)

    # Operator overloading for arithmetic operations
    def __add__(self, other):
        from ..ops.arithmetic import add
        return add(self, other)

    def __radd__(self, other):
        from ..ops.arithmetic import add
        return add(other, self)

    def __sub__(self, other):
        from ..ops.arithmetic import sub
        return sub(self, other)

    def __rsub__(self, other):
        from ..ops.arithmetic import sub
        return sub(other, self)

    def __mul__(self, other):
        from ..ops.arithmetic import mul
        return mul(self, other)

    def __rmul__(self, other):
        from ..ops.arithmetic import mul
        return mul(other, self)

    def __truediv__(self, other):
        from ..ops.arithmetic import div
        return div(self, other)

    def __rtruediv__(self, other):
        from ..ops.arithmetic import div
        return div(other, self)

    def __neg__(self):
        from ..ops.arithmetic import neg
        return neg(self)

    def __pos__(self):
        return self

    def __abs__(self):
        from ..ops.arithmetic import fabs
        return fabs(self)

    def __pow__(self, other):
        from ..ops.arithmetic import pow
        return pow(self, other)

    def __rpow__(self, other):
        from ..ops.arithmetic import pow
        return pow(other, self)


def value_of(x):
    """
    Numeric value of `x`: ADVars give their value, arrays of ADVars give a
    float64 array of values, plain numbers pass through as float64.
    """
    if isinstance(x, ADVar):
        return x.val
    if isinstance(x, np.ndarray):
        if x.dtype != object:
            return x
        return np.array([value_of(e) for e in x.flat], dtype=np.float64).reshape(x.shape)
    if isinstance(x, (list, tuple)):
        return value_of(np.asarray(x, dtype=object) if _has_var(x) else np.asarray(x, dtype=np.float64))
    return np.float64(x)


def _has_var(seq) -> bool:
    return any(isinstance(e, ADVar) for e in np.asarray(seq, dtype=object).flat)


def tape_of(*xs):
    """
    Return the tape shared by every ADVar found in `xs` (scalars, arrays or
    lists), or None when no argument holds an ADVar.

    Raises TapeMismatchError if ADVars from two different tapes are mixed.
    """
    tape = None
    for x in xs:
        if isinstance(x, ADVar):
            elems = (x,)
        elif isinstance(x, np.ndarray):
            if x.dtype != object:
                continue
            elems = x.flat
        elif isinstance(x, (list, tuple)):
            elems = np.asarray(x, dtype=object).flat
        else:
            continue
        for e in elems:
            if not isinstance(e, ADVar):
                continue
            if tape is None:
                tape = e.tape
            elif e.tape is not tape:
                raise TapeMismatchError("operands were recorded on different tapes")
    return tape
