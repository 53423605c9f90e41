# aad/matrix/base.py
"""
Shared plumbing for matrix-valued operations.

Matrices holding at least one ADVar are numpy object arrays; matrices of plain
numbers are float64 arrays. An operation whose operands are all float64
arrays computes with numpy and returns a float64 array without touching any
tape.

Two recording patterns are used:

* record_reduction: scalar-valued results (sum, dot_product, determinant, ...)
  become ONE node whose operands are every ADVar element of the inputs, with
  one precomputed partial each.
* record_fused: matrix-valued results (inverse, cholesky_decompose, ...)
  record ONE carrier node holding a closed-form backward rule, followed by
  one output node per result element. The carrier sits between its operands
  and its outputs on the tape, so by the time the reverse sweep reaches it
  every output adjoint is final.
"""
from __future__ import annotations
from typing import Callable, List, Optional, Sequence

import numpy as np

from ..core.errors import DimensionError
from ..core.var import ADVar, tape_of


def as_matrix(x) -> np.ndarray:
    """float64 array for constant input, object array when any ADVar is present."""
    if isinstance(x, np.ndarray) and x.dtype != object:
        return x.astype(np.float64, copy=False)
    arr = np.asarray(x, dtype=object)
    if any(isinstance(e, ADVar) for e in arr.flat):
        return arr
    return arr.astype(np.float64)


def is_var_matrix(a: np.ndarray) -> bool:
    return a.dtype == object


def values(a: np.ndarray) -> np.ndarray:
    """float64 values of a matrix produced by as_matrix."""
    if a.dtype != object:
        return a
    return np.array([e.val if isinstance(e, ADVar) else e for e in a.flat],
                    dtype=np.float64).reshape(a.shape)


def var_slots(a: np.ndarray):
    """(flat positions, tape indices) of the ADVar elements of `a`."""
    if a.dtype != object:
        return [], []
    pos, idx = [], []
    for k, e in enumerate(a.flat):
        if isinstance(e, ADVar):
            pos.append(k)
            idx.append(e.idx)
    return pos, idx


# ----------------------------- shape checks ----------------------------- #
def check_matrix(a: np.ndarray, fn: str, name: str = "matrix"):
    if a.ndim != 2:
        raise DimensionError(f"{fn}: {name} must be 2-dimensional, got shape {a.shape}")


def check_square(a: np.ndarray, fn: str, name: str = "matrix"):
    check_matrix(a, fn, name)
    if a.shape[0] != a.shape[1]:
        raise DimensionError(f"{fn}: {name} must be square, got shape {a.shape}")


def check_vector(a: np.ndarray, fn: str, name: str = "vector"):
    if a.ndim != 1 and not (a.ndim == 2 and 1 in a.shape):
        raise DimensionError(f"{fn}: {name} must be a vector, got shape {a.shape}")


def check_nonzero_size(a: np.ndarray, fn: str, name: str = "argument"):
    if a.size == 0:
        raise DimensionError(f"{fn}: {name} has size 0")


def check_same_shape(a: np.ndarray, b: np.ndarray, fn: str):
    if a.shape != b.shape:
        raise DimensionError(f"{fn}: shapes {a.shape} and {b.shape} do not match")


# ----------------------------- recording ----------------------------- #
def record_reduction(tape, op_tag: str, val, pairs: Sequence) -> ADVar:
    """
    One node for a scalar result.

    `pairs` is a sequence of (operand, partial) with `partial` a float array of
    the operand's shape holding d(val)/d(operand element).
    """
    parents: List[int] = []
    partials: List[float] = []
    for a, d in pairs:
        pos, idx = var_slots(a)
        if not idx:
            continue
        flat = np.ravel(np.broadcast_to(d, a.shape))
        parents.extend(idx)
        partials.extend(flat[pos].tolist())
    return tape.push(val, parents, partials, op_tag)


def record_fused(tape, op_tag: str, operands: Sequence[np.ndarray],
                 outputs: Sequence[np.ndarray],
                 adjoint: Callable[[List[np.ndarray]], Sequence[Optional[np.ndarray]]],
                 out_masks: Optional[Sequence[Optional[np.ndarray]]] = None) -> List[np.ndarray]:
    """
    Record a matrix-valued operation as one carrier node plus output nodes.

    Args:
        tape      : tape shared by the operands
        op_tag    : node kind of the carrier; outputs are tagged f"{op_tag}_out"
        operands  : input matrices (float64 or object arrays)
        outputs   : forward values, one float64 array per result
        adjoint   : maps the list of output adjoint arrays (shaped like
                    `outputs`) to one adjoint array per operand (None allowed
                    for constant operands)
        out_masks : optional boolean arrays; only True positions become output
                    nodes, the rest stay plain constants (structural zeros)

    Returns:
        One object array per output, holding ADVars (and masked-out constants).
    """
    slots = [var_slots(a) for a in operands]
    parents = [k for _, idx in slots for k in idx]
    masks = out_masks or [None] * len(outputs)
    out_positions = []
    for val, mask in zip(outputs, masks):
        flat_mask = np.ones(val.size, dtype=bool) if mask is None else np.ravel(mask)
        out_positions.append(np.flatnonzero(flat_mask))

    def backward(nodes, node):
        first = node_idx + 1
        out_adj = []
        touched = False
        for val, pos in zip(outputs, out_positions):
            a = np.zeros(val.size, dtype=np.float64)
            for p in pos:
                a[p] = nodes[first].adj
                first += 1
            touched = touched or bool(a.any())
            out_adj.append(a.reshape(val.shape))
        if not touched:
            return
        grads = adjoint(out_adj)
        for (pos, idx), g in zip(slots, grads):
            if not idx or g is None:
                continue
            flat = np.ravel(g)
            for p, k in zip(pos, idx):
                nodes[k].adj += flat[p]

    node_idx = tape.allocate_node(0.0, parents, op_tag=op_tag, backward=backward)
    results = []
    out_tag = op_tag + "_out"
    for val, pos in zip(outputs, out_positions):
        # C order so that flat positions match the masks and the backward rule
        out = np.array(val, dtype=object, order="C")
        for p in pos:
            out.flat[p] = tape.push(val.flat[p], op_tag=out_tag)
        results.append(out)
    return results


# ----------------------------- structure ----------------------------- #
def to_var(x, tape):
    """
    Promote constants to independent variables on `tape`.

    Scalars become one ADVar; arrays become object arrays in which every
    plain number is replaced by a new ADVar (existing ADVars are kept).
    """
    if isinstance(x, ADVar):
        return x
    if np.ndim(x) == 0:
        return tape.var(x)
    arr = np.asarray(x, dtype=object)
    out = np.empty(arr.shape, dtype=object)
    for k, e in enumerate(arr.flat):
        out.flat[k] = e if isinstance(e, ADVar) else tape.var(e)
    return out


def rows(x) -> int:
    a = np.asarray(x, dtype=object)
    return a.shape[0] if a.ndim >= 1 else 1


def cols(x) -> int:
    a = np.asarray(x, dtype=object)
    if a.ndim == 2:
        return a.shape[1]
    return 1


def col(m, j: int):
    """Column j of m, 1-based like the modelling language (0 or > cols raises)."""
    a = as_matrix(m)
    check_matrix(a, "col")
    if not 1 <= j <= a.shape[1]:
        raise DimensionError(f"col: index {j} out of range [1, {a.shape[1]}]")
    return a[:, j - 1].copy()


def row(m, i: int):
    """Row i of m, 1-based like the modelling language (0 or > rows raises)."""
    a = as_matrix(m)
    check_matrix(a, "row")
    if not 1 <= i <= a.shape[0]:
        raise DimensionError(f"row: index {i} out of range [1, {a.shape[0]}]")
    return a[i - 1, :].copy()


def transpose(m):
    """Transpose; handles are shared, no node is recorded."""
    a = as_matrix(m)
    return a.T.copy()


def diag_matrix(v):
    """Square matrix with `v` on the diagonal and constant zeros elsewhere."""
    a = as_matrix(v)
    if a.size:
        check_vector(a, "diag_matrix")
    flat = a.ravel()
    n = flat.size
    out = np.full((n, n), 0.0, dtype=a.dtype)
    for k in range(n):
        out[k, k] = flat[k]
    return out
