# aad/core/seeds.py

#-----------------------------------------------------------------------------
# We "plant" a seed (dy/dy = 1) at the scalar output and let gradients grow
# backwards through the tape. Each helper here records its function on a
# fresh, private tape so nothing leaks between calls.
#-----------------------------------------------------------------------------
from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Tuple, Union
import numpy as np

from .var import ADVar, value_of
from .tape import use_tape
from .engine import grad, jacobian


def value(x: Any) -> Any:
    """Return the numeric value of an ADVar (or array of them); pass through plain numbers."""
    return value_of(x)


def _check_scalar(y, who: str):
    if isinstance(y, np.ndarray) and y.shape != ():
        raise ValueError(f"{who} expects scalar output.")


# ----------------------------- single-input grad ----------------------------- #
def grad_of(f: Callable[[ADVar], ADVar], x0: float) -> Tuple[float, float]:
    """
    Value and derivative of a scalar function y=f(x) at x0 (single input).
    Runs one reverse pass within a fresh, isolated tape.
    """
    with use_tape() as tape:
        x = tape.var(x0, name="x")
        y = f(x)
        _check_scalar(y, "grad_of(f, x0)")
        return float(value_of(y)), float(grad(y, [x])[0])


# ----------------------------- multi-input grads ----------------------------- #
def grads(f: Callable[[Dict[str, ADVar]], ADVar],
          inputs: Dict[str, float]) -> Tuple[float, Dict[str, float]]:
    """
    Gradient of a scalar-output function y=f(vars) w.r.t. ALL inputs (dict form).
    Performs ONE reverse pass to obtain all dy/dvar simultaneously.

    Parameters
    ----------
    f       : function taking a dict {name: ADVar} and returning a scalar ADVar
    inputs  : dict {name: float}

    Returns
    -------
    (value, dict {name: float})  # gradients in the same key order as `inputs`
    """
    with use_tape() as tape:
        vars_ad = {k: tape.var(v, name=k) for k, v in inputs.items()}
        y = f(vars_ad)
        _check_scalar(y, "grads(f, inputs)")
        g = grad(y, list(vars_ad.values()))
        return float(value_of(y)), {k: float(gk) for k, gk in zip(inputs.keys(), g)}


def grads_list(f: Callable[[List[ADVar]], ADVar],
               x0_list: Iterable[float]) -> Tuple[float, np.ndarray]:
    """
    Same as grads(), but the inputs are provided as a list and the result is an
    array of partials in the same order.

    Example
    -------
    f = lambda xs: xs[0]*xs[0] + 3*xs[1]
    grads_list(f, [2.0, 4.0]) -> (16.0, array([4.0, 3.0]))
    """
    with use_tape() as tape:
        xs = [tape.var(v, name=f"x{i}") for i, v in enumerate(x0_list)]
        y = f(xs)
        _check_scalar(y, "grads_list(f, x0_list)")
        return float(value_of(y)), grad(y, xs)


def jacobian_of(f: Callable[[List[ADVar]], Union[List, np.ndarray]],
                x0_list: Iterable[float]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Values and Jacobian of a vector-valued function ys=f(xs).

    Returns
    -------
    (values, J) with values[i] = ys[i] and J[i, j] = d ys[i] / d xs[j]
    """
    with use_tape() as tape:
        xs = [tape.var(v, name=f"x{i}") for i, v in enumerate(x0_list)]
        ys = f(xs)
        ys = list(ys.ravel()) if isinstance(ys, np.ndarray) else list(ys)
        vals = np.array([value_of(y) for y in ys], dtype=np.float64)
        return vals, jacobian(ys, xs)
