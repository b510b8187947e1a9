# tensorad/core/__init__.py

"""
Core public API of the engine.

Exports:
    Tensor          : Dense column-major array; `contract` is the generalized matmul.
    BindingTable    : Multimap node -> Tensor (input bindings and gradient tables).
    Node, NodeKind  : Expression graph vertices with reference-counted lifetime.
    placeholder, constant, scalar, apply : Leaf and operator-node constructors.
    Operator, CustomOperator : Forward/derivative protocol for operator nodes.
    evaluate        : Forward pass (consumes the bindings).
    differentiate   : Per-path Jacobians of the root w.r.t. each leaf reached.
    total_gradient, accumulate, gradients : Sum per-path contributions.
    Arena, use_arena, current_arena : Node registry and batch teardown.
    EngineConfig, use_config : dtype / debug-check configuration.
"""

from .tensor import Tensor, contract, matmul
from .binding import BindingTable, Trace
from .operator import Operator, CustomOperator
from .node import Node, NodeKind, placeholder, constant, scalar, apply, release
from .engine import evaluate, differentiate
from .accumulation import total_gradient, accumulate, gradients
from .arena import Arena, use_arena, current_arena
from .config import EngineConfig, use_config
from .errors import (
    ContractViolation,
    ShapeMismatch,
    MissingBinding,
    NotDifferentiable,
    ConsumedTable,
    NodeLifetimeError,
)

__all__ = [
    "Tensor", "contract", "matmul",
    "BindingTable", "Trace",
    "Operator", "CustomOperator",
    "Node", "NodeKind", "placeholder", "constant", "scalar", "apply", "release",
    "evaluate", "differentiate",
    "total_gradient", "accumulate", "gradients",
    "Arena", "use_arena", "current_arena",
    "EngineConfig", "use_config",
    "ContractViolation", "ShapeMismatch", "MissingBinding",
    "NotDifferentiable", "ConsumedTable", "NodeLifetimeError",
]
