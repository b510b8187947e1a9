# tensorad/ops/arithmetic.py
import numpy as np

from ..core import config as config_mod
from ..core.node import Node, apply
from ..core.operator import Operator
from ..core.tensor import Tensor, broadcast_binary, broadcast_shape, size_of


class ElementwiseBinary(Operator):
    """
    Generic binary primitive y = f(x0, x1) with scalar broadcasting:
      - x0 and x1 have the same shape, or one of them is rank 0
      - dfdx / dfdy give the local partials ∂y[i]/∂x0[i], ∂y[i]/∂x1[i]

    Jacobian w.r.t. an operand of the output's shape is diagonal (y.shape ++ y.shape).
    Jacobian w.r.t. a broadcast rank-0 operand has shape y.shape ++ () = y.shape:
    every output element depends on that single value.
    """
    arity = 2

    def __init__(self, tag, f, dfdx, dfdy):
        self.op_tag = tag
        self.f = f
        self.partials = (dfdx, dfdy)

    def forward(self, xs):
        x0, x1 = xs
        return broadcast_binary(self.f, x0, x1)

    def derivative(self, xs):
        x0, x1 = xs
        shape = broadcast_shape(x0, x1)
        n = size_of(shape)
        jacobians = []
        for x, partial in zip(xs, self.partials):
            d = np.asarray(partial(x0.data, x1.data), dtype=config_mod.config.dtype)
            d = np.broadcast_to(d, (n,))
            if x.rank == len(shape):
                jacobians.append(Tensor.diagonal(shape, d))
            else:
                jacobians.append(Tensor._wrap(shape, d.copy()))
        return jacobians


ADD = ElementwiseBinary("add", np.add, lambda a, b: 1.0, lambda a, b: 1.0)
SUBTRACT = ElementwiseBinary("subtract", np.subtract, lambda a, b: 1.0, lambda a, b: -1.0)
MULTIPLY = ElementwiseBinary("multiply", np.multiply, lambda a, b: b, lambda a, b: a)
DIVIDE = ElementwiseBinary("divide", np.divide, lambda a, b: 1.0 / b, lambda a, b: -a / np.square(b))


def add(x0, x1):      return apply(ADD, x0, x1)
def subtract(x0, x1): return apply(SUBTRACT, x0, x1)
def multiply(x0, x1): return apply(MULTIPLY, x0, x1)
def divide(x0, x1):   return apply(DIVIDE, x0, x1)


# Bind Python operators to Node
Node.__add__      = lambda self, other: add(self, other)
Node.__radd__     = lambda self, other: add(other, self)
Node.__sub__      = lambda self, other: subtract(self, other)
Node.__rsub__     = lambda self, other: subtract(other, self)
Node.__mul__      = lambda self, other: multiply(self, other)
Node.__rmul__     = lambda self, other: multiply(other, self)
Node.__truediv__  = lambda self, other: divide(self, other)
Node.__rtruediv__ = lambda self, other: divide(other, self)
