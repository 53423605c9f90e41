# aad/ops/arithmetic.py
import numpy as np
from ..core.var import ADVar
from ..core.errors import TapeMismatchError


def _const(x):
    """Plain numeric operand as float64 (IEEE semantics for /0, overflow, ...)."""
    return np.float64(x)


def _unary(x, f, dfdx, tag):
    """
    Generic unary primitive:
      - constant operand: returns f(x) as a plain float64, nothing is recorded
      - ADVar operand   : computes out = f(x.val) and records one node with the
                          local partial dfdx(x.val, out)
    """
    if not isinstance(x, ADVar):
        return f(_const(x))
    xv = x.val
    out = f(xv)
    return x.tape.push(out, (x.idx,), (dfdx(xv, out),), tag)


def _binary(x, y, f, dfdx, dfdy, tag):
    """
    Generic binary primitive:
      - computes out = f(x.val, y.val)
      - records a Node with local partials (dout/dx, dout/dy), one per operand
        that is an ADVar; constant operands are not recorded at all
      - with no ADVar operand, returns the plain float64 result
    The partial callables receive (x.val, y.val, out) and are only evaluated
    for differentiable operands.
    """
    x_var = isinstance(x, ADVar)
    y_var = isinstance(y, ADVar)
    if not (x_var or y_var):
        return f(_const(x), _const(y))

    xv = x.val if x_var else _const(x)
    yv = y.val if y_var else _const(y)
    out = f(xv, yv)

    if x_var and y_var:
        if x.tape is not y.tape:
            raise TapeMismatchError(f"operands of '{tag}' were recorded on different tapes")
        return x.tape.push(out, (x.idx, y.idx),
                           (dfdx(xv, yv, out), dfdy(xv, yv, out)), tag)
    if x_var:
        return x.tape.push(out, (x.idx,), (dfdx(xv, yv, out),), tag)
    return y.tape.push(out, (y.idx,), (dfdy(xv, yv, out),), tag)


def add(x, y): return _binary(x, y, lambda a,b:a+b, lambda a,b,o:1.0,     lambda a,b,o:1.0,       "add")
def sub(x, y): return _binary(x, y, lambda a,b:a-b, lambda a,b,o:1.0,     lambda a,b,o:-1.0,      "sub")
def mul(x, y): return _binary(x, y, lambda a,b:a*b, lambda a,b,o:b,       lambda a,b,o:a,         "mul")
def div(x, y): return _binary(x, y, lambda a,b:a/b, lambda a,b,o:1.0/b,   lambda a,b,o:-o/b,      "div")


def neg(x):
    """
    Unary negation:
      out = -x, dout/dx = -1
    """
    return _unary(x, lambda a: -a, lambda a, o: -1.0, "neg")


def square(x):
    return _unary(x, lambda a: a * a, lambda a, o: 2.0 * a, "square")


def fabs(x):
    """
    Absolute value. At x == 0 the subgradient 0 is used (sign(0) == 0);
    NaN stays NaN.
    """
    return _unary(x, np.fabs, lambda a, o: np.sign(a), "fabs")


def _pow_dfdx(a, b, o):
    return b * (a ** (b - 1.0))


def _pow_dfdy(a, b, o):
    # d(x^p)/dp = x^p * log x; 0 where log x is undefined (x <= 0)
    return o * np.log(a) if a > 0 else 0.0


def pow(x, y):
    """
    Power:
      out = x ** y

    Local partials:
      dout/dx = y * x^(y-1)
      dout/dy = x^y * log(x)        (0 for x <= 0)
    """
    return _binary(x, y, lambda a, b: a ** b, _pow_dfdx, _pow_dfdy, "pow")


def _pick_first(a, b):
    # True when `a` is the selected operand of fmax/fmin-style choices
    if np.isnan(a):
        return False
    if np.isnan(b):
        return True
    return None


def fmax(x, y):
    """
    Larger of x and y (NaN operands are ignored like numpy.fmax).
    Ties send the whole adjoint to x.
    """
    def dfdx(a, b, o):
        first = _pick_first(a, b)
        return 1.0 if (first if first is not None else a >= b) else 0.0

    def dfdy(a, b, o):
        return 1.0 - dfdx(a, b, o)

    return _binary(x, y, np.fmax, dfdx, dfdy, "fmax")


def fmin(x, y):
    """
    Smaller of x and y (NaN operands are ignored like numpy.fmin).
    Ties send the whole adjoint to x.
    """
    def dfdx(a, b, o):
        first = _pick_first(a, b)
        return 1.0 if (first if first is not None else a <= b) else 0.0

    def dfdy(a, b, o):
        return 1.0 - dfdx(a, b, o)

    return _binary(x, y, np.fmin, dfdx, dfdy, "fmin")


def hypot(x, y):
    """sqrt(x^2 + y^2) without intermediate overflow."""
    return _binary(x, y, np.hypot, lambda a, b, o: a / o, lambda a, b, o: b / o, "hypot")
