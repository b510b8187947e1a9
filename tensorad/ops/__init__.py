# tensorad/ops/__init__.py

# Importing the modules also binds the Python operators (+ - * / @ unary - abs) on Node
from . import arithmetic
from . import contraction
from . import elementwise
from . import reduction

# Convenience re-exports so users can do: from tensorad.ops import add, exp, ...
from .elementwise import abs, exp, negate, reciprocal, sqrt
from .arithmetic import add, subtract, multiply, divide
from .reduction import sum
from .contraction import matmul

__all__ = [
    "abs", "exp", "negate", "reciprocal", "sqrt",
    "add", "subtract", "multiply", "divide",
    "sum",
    "matmul",
]
