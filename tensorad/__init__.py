# tensorad/__init__.py
# Symbolic tensor expressions with full-Jacobian differentiation

from .core.tensor import Tensor, contract
from .core.binding import BindingTable
from .core.node import Node, placeholder, constant, scalar, operator, release
from .core.engine import evaluate, differentiate
from .core.accumulation import total_gradient, accumulate, gradients
from .core.arena import Arena, use_arena
from .core.config import EngineConfig, use_config
from .core.errors import (
    ContractViolation, ShapeMismatch, MissingBinding,
    NotDifferentiable, ConsumedTable, NodeLifetimeError,
)

# Operator catalog (also binds + - * / @ on Node)
from . import ops
from .ops import (
    abs, exp, negate, reciprocal, sqrt,
    add, subtract, multiply, divide,
    sum,
    matmul,
)

__all__ = [
    # Core
    'Tensor',
    'contract',
    'BindingTable',
    'Node',
    'placeholder',
    'constant',
    'scalar',
    'operator',
    'release',
    # Engine
    'evaluate',
    'differentiate',
    'total_gradient',
    'accumulate',
    'gradients',
    # Lifetime / configuration
    'Arena',
    'use_arena',
    'EngineConfig',
    'use_config',
    'ContractViolation', 'ShapeMismatch', 'MissingBinding',
    'NotDifferentiable', 'ConsumedTable', 'NodeLifetimeError',
    # Operators
    'ops',
    'abs', 'exp', 'negate', 'reciprocal', 'sqrt',
    'add', 'subtract', 'multiply', 'divide',
    'sum',
    'matmul',
]

__version__ = '0.1.0'
