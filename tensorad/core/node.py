# tensorad/core/node.py
"""
Expression graph nodes and their shared-ownership lifetime.

A node is one of three kinds, each with its own payload field:

    PLACEHOLDER  no operands; its tensor is supplied at evaluation time
    CONSTANT     no operands; owns exactly one Tensor (`value`)
    OPERATOR     one or more operands; holds an Operator (`op`)

Operators hold shared references to their operands, so a node may feed many
operators (a DAG). Lifetime is reference counted:

  - A new node starts with one reference owned by its creator. That creation
    reference is *floating*: the first operator that captures the node adopts
    it instead of adding another one. Every further capture adds one.
  - `retain()` gives the caller a reference of its own (on a floating node it
    takes over the creation reference). Pair every retain() with a release().
  - `release()` drops one reference. At zero the node is freed: its operands
    are released in turn and a constant drops its tensor.

So `release(root)` on a freshly built expression frees the whole graph, and
nodes the caller retained survive until the caller releases them too.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from . import arena as arena_mod  # module access so use_arena() is honoured
from .errors import NodeLifetimeError, violation
from .operator import CustomOperator, Operator
from .tensor import Tensor

logger = logging.getLogger(__name__)


class NodeKind(Enum):
    PLACEHOLDER = "placeholder"
    CONSTANT = "constant"
    OPERATOR = "operator"


@dataclass(eq=False)   # identity semantics: nodes are binding-table keys
class Node:
    """
    One vertex of the expression DAG.

    Attributes
    ----------
    kind     : NodeKind
    operands : tuple[Node, ...]   (OPERATOR only)
    op       : Operator           (OPERATOR only)
    value    : Tensor             (CONSTANT only, owned)
    name     : optional debug label
    ref_count: number of live references
    floating : True while the creation reference has not been claimed
    alive    : False once freed
    """
    kind: NodeKind
    operands: Tuple["Node", ...] = ()
    op: Optional[Operator] = None
    value: Optional[Tensor] = None
    name: Optional[str] = None
    ref_count: int = field(default=1, init=False)
    floating: bool = field(default=True, init=False)
    alive: bool = field(default=True, init=False)
    arena: Optional[object] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if self.kind is NodeKind.OPERATOR:
            if not isinstance(self.op, Operator):
                raise TypeError(f"operator node needs an Operator, but got {type(self.op)}")
            self.operands = tuple(self.operands)
            self.op.check_arity(len(self.operands))
            for x in self.operands:
                if not isinstance(x, Node):
                    raise TypeError(f"operands must be Node, but got {type(x)}")
                x._capture()
        else:
            if self.operands or self.op is not None:
                raise TypeError(f"{self.kind.value} nodes take no operands")
            if self.kind is NodeKind.CONSTANT and not isinstance(self.value, Tensor):
                raise TypeError(f"constant nodes own a Tensor, but got {type(self.value)}")
        self.arena = arena_mod.global_arena
        self.arena.register(self)

    # ---------------- reference counting ---------------- #
    def _check_alive(self, action: str):
        if not self.alive:
            raise violation(NodeLifetimeError(f"cannot {action} {self!r}: node was already freed"))

    def _capture(self):
        """Called when an operator takes a reference to this node."""
        self._check_alive("capture")
        if self.floating:
            self.floating = False
        else:
            self.ref_count += 1

    def retain(self) -> "Node":
        """Take a reference owned by the caller; returns self."""
        self._check_alive("retain")
        if self.floating:
            self.floating = False
        else:
            self.ref_count += 1
        return self

    def release(self) -> None:
        """Drop one reference; free the node (and cascade) when none remain."""
        pending = [self]
        while pending:
            node = pending.pop()
            node._check_alive("release")
            node.ref_count -= 1
            if node.ref_count == 0:
                pending.extend(reversed(node.operands))
                node._free()

    def _free(self):
        logger.debug("freeing %r", self)
        self.alive = False
        self.ref_count = 0
        self.floating = False
        self.operands = ()
        self.op = None
        self.value = None
        self.arena.on_free(self)

    # ---------------- properties ---------------- #
    @property
    def op_tag(self) -> str:
        if self.kind is NodeKind.OPERATOR and self.op is not None:
            return self.op.op_tag
        return self.kind.value

    @property
    def is_leaf(self) -> bool:
        return self.kind is not NodeKind.OPERATOR

    def __repr__(self):
        label = f" {self.name!r}" if self.name else ""
        state = f"refs={self.ref_count}" if self.alive else "freed"
        return f"<Node {self.op_tag}{label} at {id(self):#x} {state}>"


# ---------------- leaf / operator constructors ---------------- #
def placeholder(name: Optional[str] = None) -> Node:
    """New leaf whose tensor is supplied through the bindings at evaluation time."""
    return Node(NodeKind.PLACEHOLDER, name=name)


def constant(value, name: Optional[str] = None) -> Node:
    """New leaf owning `value` (a Tensor, or anything Tensor.from_array accepts)."""
    if not isinstance(value, Tensor):
        value = Tensor.from_array(value)
    return Node(NodeKind.CONSTANT, value=value, name=name)


def scalar(value: float, name: Optional[str] = None) -> Node:
    """New rank-0 constant."""
    return Node(NodeKind.CONSTANT, value=Tensor.scalar(value), name=name)


def as_node(x) -> Node:
    """Pass nodes through; wrap tensors, numbers and arrays as constants."""
    return x if isinstance(x, Node) else constant(x)


def apply(op: Operator, *operands, name: Optional[str] = None) -> Node:
    """New operator node applying `op` to `operands` (non-nodes become constants)."""
    return Node(NodeKind.OPERATOR, operands=tuple(as_node(x) for x in operands), op=op, name=name)


def operator(forward_fn, derivative_fn, *operands, name: str = "custom") -> Node:
    """
    New operator node from a forward function and a derivative function
    (see tensorad.core.operator for their contracts).
    """
    return apply(CustomOperator(forward_fn, derivative_fn, name=name), *operands)


def release(node: Node) -> None:
    """Drop one reference to `node`, freeing unreferenced nodes below it."""
    node.release()
