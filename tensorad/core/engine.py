# tensorad/core/engine.py
from __future__ import annotations
import logging
from typing import FrozenSet, Iterable, List, Optional

from . import config as config_mod
from .binding import BindingTable, Trace
from .errors import NodeLifetimeError, ShapeMismatch, require, violation
from .node import Node, NodeKind
from .tensor import Tensor, contract

logger = logging.getLogger(__name__)


def evaluate(root: Node, bindings: BindingTable, *, consume: bool = True) -> Tensor:
    """
    Evaluate the expression rooted at `root`.

    Args:
        root: output node of the expression
        bindings: placeholder -> Tensor assignments
        consume: destroy `bindings` (and its tensors) when done. With
            consume=False the caller keeps a usable table.

    Returns:
        The root's output tensor (owned by the caller).

    Notes:
        Single depth-first, post-order pass. Operand outputs are memoized in a
        Trace keyed by operand node. There is no sharing across sibling
        branches: a node with several parents is computed once per parent.
    """
    trace = None
    try:
        _check_root(root)
        trace = Trace(bindings)
        y = _forward(root, trace)
        logger.debug("evaluated %r -> shape %s (%d memo entries)", root, y.shape, trace.count)
        return y
    finally:
        if trace is not None:
            trace.destroy()
        if consume:
            bindings.destroy()


def differentiate(root: Node, bindings: BindingTable, *,
                  wrt: Optional[Iterable[Node]] = None, consume: bool = True) -> BindingTable:
    """
    Jacobians of the root's output with respect to every placeholder reached.

    Args:
        root: output node y of the expression
        bindings: placeholder -> Tensor assignments
        wrt: optional collection of placeholders to differentiate against;
             placeholders outside it are held fixed like constants
        consume: destroy `bindings` when done

    Returns:
        A new BindingTable mapping leaf -> dy/dleaf, each of shape
        y.shape ++ leaf.shape. A leaf reachable through several paths gets one
        entry PER PATH: the total gradient is the elementwise sum of
        `table.get_all(leaf)` (see tensorad.core.accumulation).

    Algorithm:
        1) Forward pass to fill the trace with every operand value.
        2) Reverse recursion. A placeholder yields the identity Jacobian
           diagonal_full(shape, 1). An operator asks its Operator for
           J_i = dy/dx_i, recursively gets its operands' tables {leaf: dx_i/dleaf}
           and stores contract(J_i, dx_i/dleaf, overwrap=rank(x_i)) = dy/dleaf.
           Constants contribute nothing.
    """
    trace = None
    try:
        _check_root(root)
        wrt_set = None if wrt is None else _check_wrt(wrt)
        trace = Trace(bindings)
        _forward(root, trace)
        table = _backward(root, trace, wrt_set)
        logger.debug("differentiated %r: %d contributions for %d leaves",
                     root, table.count, len(table.keys()))
        return table
    finally:
        if trace is not None:
            trace.destroy()
        if consume:
            bindings.destroy()


def _check_root(root: Node):
    if not isinstance(root, Node):
        raise TypeError(f"expected a graph Node, but got {type(root)}")
    if not root.alive:
        raise violation(NodeLifetimeError(f"cannot evaluate {root!r}: node was already freed"))


def _check_wrt(wrt: Iterable[Node]) -> FrozenSet[Node]:
    wrt_set = frozenset(wrt)
    for node in wrt_set:
        require(isinstance(node, Node) and node.kind is NodeKind.PLACEHOLDER,
                message=f"wrt accepts placeholders only, got {node!r}")
    return wrt_set


def _forward(node: Node, trace: Trace) -> Tensor:
    if node.kind is NodeKind.PLACEHOLDER:
        return trace.lookup_input(node).copy()
    if node.kind is NodeKind.CONSTANT:
        return node.value.copy()
    xs: List[Tensor] = []
    for operand in node.operands:
        x = _forward(operand, trace)
        trace.insert(operand, x)
        xs.append(x)
    return node.op.forward(xs)


def _backward(node: Node, trace: Trace, wrt: Optional[FrozenSet[Node]]) -> BindingTable:
    if node.kind is NodeKind.PLACEHOLDER:
        table = BindingTable(1)
        if wrt is None or node in wrt:
            x = trace.lookup_input(node)
            table.insert(node, Tensor.diagonal_full(x.shape, 1.0))
        return table
    if node.kind is NodeKind.CONSTANT:
        return BindingTable(0)

    sub_tables = [_backward(operand, trace, wrt) for operand in node.operands]
    table = BindingTable(sum(t.count for t in sub_tables))
    if table.capacity == 0:
        # Nothing below depends on a leaf: skip the local Jacobians
        return table

    xs = [trace.get(operand) for operand in node.operands]
    jacobians = node.op.derivative(xs)
    if config_mod.config.debug_checks:
        _check_jacobians(node, xs, jacobians)

    for x, dy_dx, dx_table in zip(xs, jacobians, sub_tables):
        for leaf, dx_dleaf in dx_table.items():
            table.insert(leaf, contract(dy_dx, dx_dleaf, x.rank))
        dx_table.destroy()
    return table


def _check_jacobians(node: Node, xs: List[Tensor], jacobians: List[Tensor]):
    require(len(jacobians) == len(xs), ShapeMismatch,
            f"'{node.op_tag}' returned {len(jacobians)} Jacobians for {len(xs)} operands")
    for i, (x, jac) in enumerate(zip(xs, jacobians)):
        if not isinstance(jac, Tensor):
            raise TypeError(f"'{node.op_tag}' Jacobian {i} is {type(jac)}, expected Tensor")
        require(jac.rank >= x.rank and jac.shape[jac.rank - x.rank:] == x.shape, ShapeMismatch,
                f"'{node.op_tag}' Jacobian {i} has shape {jac.shape}, "
                f"which does not end with operand shape {x.shape}")
