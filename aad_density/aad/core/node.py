# aad/core/node.py
from typing import Callable, Optional, Sequence


class Node:
    """
    One node on the tape produced by a primitive (or fused) operation.

    Attributes
    ----------
    op_tag : str
        Node kind (e.g. "add", "exp", "determinant", "inverse_out").
    val : np.float64
        Forward value. Never modified after construction.
    adj : float
        Adjoint accumulator, zeroed before every reverse sweep.
    parents : Sequence[int]
        Tape indices of the operands. Every index is strictly smaller than the
        index of this node, so reverse creation order is a valid reverse
        topological order.
    partials : Sequence[float]
        Local partials d(val)/d(parent), aligned with `parents`. The default
        backward rule is parent.adj += adj * partial.
    backward : Optional[Callable[[list, Node], None]]
        Closed-form backward rule for nodes whose contribution cannot be
        expressed as one partial per parent (matrix-valued operations). When
        set, it replaces the partials-based rule.
    """

    __slots__ = ("op_tag", "val", "adj", "parents", "partials", "backward")

    def __init__(self, op_tag: str, val, parents: Sequence[int] = (),
                 partials: Sequence[float] = (),
                 backward: Optional[Callable] = None):
        self.op_tag = op_tag
        self.val = val
        self.adj = 0.0
        self.parents = parents
        self.partials = partials
        self.backward = backward

    def __repr__(self):
        return f"Node({self.op_tag}, val={self.val!r}, adj={self.adj!r}, parents={list(self.parents)!r})"
