# tensorad/core/operator.py
"""
Operator protocol.

An operator node holds one Operator. The built-in catalog (tensorad.ops)
is a closed set of Operator subclasses. Third-party operators come in through
CustomOperator, which wraps a plain forward function and derivative function.

    forward(xs)    -> Tensor
        xs are the evaluated operand tensors, in operand order.
    derivative(xs) -> list[Tensor]
        One FULL Jacobian per operand: the derivative of the output with respect
        to xs[i], with shape output.shape ++ xs[i].shape (rank = rank(y) + rank(xs[i])).

Both must treat `xs` as read-only and return freshly allocated tensors.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

from .errors import NotDifferentiable, require, violation
from .tensor import Tensor


class Operator(ABC):
    """Base class for forward/derivative pairs."""

    op_tag: str = "operator"
    arity: Optional[int] = None     # None: any number of operands (>= 1)

    @abstractmethod
    def forward(self, xs: Sequence[Tensor]) -> Tensor:
        ...

    def derivative(self, xs: Sequence[Tensor]) -> List[Tensor]:
        raise violation(NotDifferentiable(f"operator '{self.op_tag}' has no derivative"))

    def check_arity(self, n: int) -> None:
        require(n >= 1, message=f"operator '{self.op_tag}' needs at least one operand")
        if self.arity is not None:
            require(n == self.arity,
                    message=f"operator '{self.op_tag}' takes {self.arity} operands, got {n}")

    def __repr__(self):
        return f"{type(self).__name__}({self.op_tag!r})"


class CustomOperator(Operator):
    """
    Operator built from user callables.

    Args:
        forward_fn: f(xs) -> Tensor
        derivative_fn: df(xs) -> list of Jacobian tensors, or None if the
            operator is only ever evaluated (differentiating through it then
            raises NotDifferentiable)
        name: tag shown in reprs and graph summaries
    """

    def __init__(self, forward_fn: Callable[[Sequence[Tensor]], Tensor],
                 derivative_fn: Optional[Callable[[Sequence[Tensor]], Sequence[Tensor]]] = None,
                 name: str = "custom", arity: Optional[int] = None):
        if not callable(forward_fn):
            raise TypeError(f"forward_fn must be callable, but got {type(forward_fn)}")
        if derivative_fn is not None and not callable(derivative_fn):
            raise TypeError(f"derivative_fn must be callable, but got {type(derivative_fn)}")
        self.forward_fn = forward_fn
        self.derivative_fn = derivative_fn
        self.op_tag = name
        self.arity = arity

    def forward(self, xs: Sequence[Tensor]) -> Tensor:
        y = self.forward_fn(xs)
        if not isinstance(y, Tensor):
            raise TypeError(f"operator '{self.op_tag}' forward returned {type(y)}, expected Tensor")
        return y

    def derivative(self, xs: Sequence[Tensor]) -> List[Tensor]:
        if self.derivative_fn is None:
            return super().derivative(xs)
        return list(self.derivative_fn(xs))
