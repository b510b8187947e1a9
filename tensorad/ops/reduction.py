# tensorad/ops/reduction.py
from ..core.node import apply
from ..core.operator import Operator
from ..core.tensor import Tensor


class Sum(Operator):
    """Full reduction to a rank-0 tensor; dy/dx is all ones with shape () ++ x.shape."""
    op_tag = "sum"
    arity = 1

    def forward(self, xs):
        (x,) = xs
        return Tensor.scalar(float(x.data.sum()))

    def derivative(self, xs):
        (x,) = xs
        return [Tensor.full(x.shape, 1.0)]


SUM = Sum()


def sum(x):
    return apply(SUM, x)
