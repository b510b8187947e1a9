# tensorad/ops/contraction.py
import numpy as np

from ..core import config as config_mod
from ..core.node import Node, apply
from ..core.operator import Operator
from ..core.tensor import Tensor, contract, size_of


class MatMul(Operator):
    """
    y = contract(x0, x1, overwrap): generalized matrix product.

    Write F = x0's leading dims, K = the `overwrap` shared dims and B = x1's
    trailing dims, so x0 ~ (F, K), x1 ~ (K, B) and y ~ (F, B) as column-major
    matrices A, Bm and Y = A @ Bm. Then

        ∂Y[f, b] / ∂A[g, k]  = δ(f, g) · Bm[k, b]     shape F ++ B ++ F ++ K
        ∂Y[f, b] / ∂Bm[k, c] = A[f, k] · δ(b, c)      shape F ++ B ++ K ++ B
    """
    op_tag = "matmul"
    arity = 2

    def __init__(self, overwrap: int = 1):
        if int(overwrap) < 0:
            raise ValueError(f"overwrap must be non-negative, got {overwrap}")
        self.overwrap = int(overwrap)

    def forward(self, xs):
        x0, x1 = xs
        return contract(x0, x1, self.overwrap)

    def derivative(self, xs):
        x0, x1 = xs
        front_rank = x0.rank - self.overwrap
        front = x0.shape[:front_rank]
        shared = x0.shape[front_rank:]
        back = x1.shape[self.overwrap:]
        dtype = config_mod.config.dtype

        a = x0.matrix(front_rank)
        b = x1.matrix(self.overwrap)
        eye_front = np.eye(size_of(front), dtype=dtype)
        eye_back = np.eye(size_of(back), dtype=dtype)

        # Axis order of each einsum output follows the Jacobian's shape, and a
        # Fortran-order ravel turns it into the column-major buffer.
        d_x0 = np.einsum("fg,kb->fbgk", eye_front, b).ravel(order="F")
        d_x1 = np.einsum("fk,bc->fbkc", a, eye_back).ravel(order="F")
        return [
            Tensor._wrap(front + back + front + shared, d_x0),
            Tensor._wrap(front + back + shared + back, d_x1),
        ]

    def __repr__(self):
        return f"MatMul(overwrap={self.overwrap})"


def matmul(x0, x1, overwrap: int = 1):
    return apply(MatMul(overwrap), x0, x1)


Node.__matmul__  = lambda self, other: matmul(self, other)
Node.__rmatmul__ = lambda self, other: matmul(other, self)
