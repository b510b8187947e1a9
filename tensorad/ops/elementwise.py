# tensorad/ops/elementwise.py
import numpy as np

from ..core import config as config_mod
from ..core.node import Node, apply
from ..core.operator import Operator
from ..core.tensor import Tensor


class ElementwiseUnary(Operator):
    """
    y[i] = f(x[i]) for every flat index i.

    The Jacobian is diagonal: reading dy/dx (shape x.shape ++ x.shape) as a
    square matrix, entry (i, i) is df(x[i]) and every other entry is 0.
    """
    arity = 1

    def __init__(self, tag, f, df):
        self.op_tag = tag
        self.f = f
        self.df = df

    def forward(self, xs):
        (x,) = xs
        y = np.asarray(self.f(x.data), dtype=config_mod.config.dtype)
        return Tensor._wrap(x.shape, y)

    def derivative(self, xs):
        (x,) = xs
        d = np.broadcast_to(np.asarray(self.df(x.data), dtype=config_mod.config.dtype), x.data.shape)
        return [Tensor.diagonal(x.shape, d)]


ABS = ElementwiseUnary("abs", np.abs, lambda x: np.where(x >= 0.0, 1.0, -1.0))
EXP = ElementwiseUnary("exp", np.exp, np.exp)
NEGATE = ElementwiseUnary("negate", np.negative, lambda x: -1.0)
RECIPROCAL = ElementwiseUnary("reciprocal", lambda x: 1.0 / x, lambda x: -1.0 / np.square(x))
SQRT = ElementwiseUnary("sqrt", np.sqrt, lambda x: 0.5 / np.sqrt(x))


def abs(x):        return apply(ABS, x)
def exp(x):        return apply(EXP, x)
def negate(x):     return apply(NEGATE, x)
def reciprocal(x): return apply(RECIPROCAL, x)
def sqrt(x):       return apply(SQRT, x)


Node.__neg__ = lambda self: negate(self)
Node.__abs__ = lambda self: abs(self)
