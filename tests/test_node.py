"""Tests for graph nodes: construction, reference counting and arenas."""

import pytest

from tensorad import (
    Arena, add, constant, exp, multiply, negate, placeholder, release, use_arena,
)
from tensorad.core.arena import current_arena
from tensorad.core.errors import ContractViolation, NodeLifetimeError
from tensorad.core.graph_utils import graph_summary, reachable_nodes
from tensorad.core.node import Node, NodeKind, apply
from tensorad.ops.elementwise import NEGATE


class TestConstruction:
    def test_kinds(self):
        x = placeholder("x")
        c = constant([1.0, 2.0])
        y = add(x, c)
        assert x.kind is NodeKind.PLACEHOLDER and x.is_leaf
        assert c.kind is NodeKind.CONSTANT and c.value.shape == (2,)
        assert y.kind is NodeKind.OPERATOR and not y.is_leaf
        assert y.operands == (x, c)
        assert y.op_tag == "add"

    def test_constant_needs_numbers(self):
        with pytest.raises(TypeError):
            constant("abc")

    def test_leaf_takes_no_operands(self):
        x = placeholder()
        with pytest.raises(TypeError):
            Node(NodeKind.PLACEHOLDER, operands=(x,))

    def test_operands_must_be_nodes(self):
        with pytest.raises(TypeError):
            Node(NodeKind.OPERATOR, operands=("a",), op=NEGATE)

    def test_arity_checked(self):
        x = placeholder()
        with pytest.raises(ContractViolation):
            apply(NEGATE, x, x)

    def test_repr_shows_name(self):
        assert "'x'" in repr(placeholder("x"))


class TestOperatorOverloading:
    def test_arithmetic(self):
        x = placeholder()
        y = (x + 2.0) * 3.0
        assert y.op_tag == "multiply"
        assert y.operands[0].op_tag == "add"
        assert y.operands[1].kind is NodeKind.CONSTANT

    def test_reflected(self):
        x = placeholder()
        y = 2.0 - x
        assert y.op_tag == "subtract"
        assert y.operands[0].kind is NodeKind.CONSTANT
        assert y.operands[1] is x
        assert (1.0 / x).op_tag == "divide"

    def test_unary_and_matmul(self):
        x = placeholder()
        assert (-x).op_tag == "negate"
        assert abs(x).op_tag == "abs"
        assert (x @ x).op_tag == "matmul"


class TestReferenceCounting:
    def test_new_node_is_floating(self):
        x = placeholder()
        assert x.ref_count == 1
        assert x.floating
        assert x.alive

    def test_first_capture_adopts_creation_reference(self):
        x = placeholder()
        y = negate(x)
        assert x.ref_count == 1
        assert not x.floating
        assert y.floating

    def test_release_root_frees_graph(self, arena):
        x = placeholder()
        y = exp(negate(x))
        release(y)
        assert not x.alive and not y.alive
        assert arena.freed_count == 3
        assert len(arena) == 0

    def test_retained_leaf_survives(self):
        x = placeholder().retain()
        assert not x.floating and x.ref_count == 1
        y = exp(x)
        assert x.ref_count == 2
        release(y)
        assert x.alive and x.ref_count == 1
        release(x)
        assert not x.alive

    def test_retain_adds_reference(self):
        x = placeholder()
        negate(x)
        x.retain()
        assert x.ref_count == 2

    def test_shared_subgraph_survives_other_root(self, arena):
        x = placeholder()
        s = add(x, 1.0).retain()
        root = negate(s)
        assert s.ref_count == 2
        release(root)
        assert s.alive and x.alive
        release(s)
        assert arena.freed_count == arena.created_count == 4

    def test_same_operand_twice(self, arena):
        x = placeholder()
        y = multiply(x, x)
        assert x.ref_count == 2
        release(y)
        assert not x.alive
        assert arena.freed_count == 2

    def test_diamond_frees_each_node_once(self, arena):
        x = placeholder()
        root = add(exp(x), negate(x))
        assert x.ref_count == 2
        release(root)
        assert arena.freed_count == 4
        assert len(arena) == 0

    def test_constant_drops_tensor(self):
        c = constant([1.0, 2.0])
        release(c)
        assert c.value is None

    def test_double_release(self):
        x = placeholder()
        release(x)
        with pytest.raises(NodeLifetimeError):
            release(x)

    def test_freed_node_cannot_be_used(self):
        x = placeholder()
        release(x)
        with pytest.raises(NodeLifetimeError):
            x.retain()
        with pytest.raises(NodeLifetimeError):
            negate(x)


class TestArena:
    def test_nodes_register_with_active_arena(self, arena):
        assert current_arena() is arena
        inner = Arena()
        with use_arena(inner):
            x = placeholder()
        y = placeholder()
        assert x.arena is inner
        assert y.arena is arena
        assert current_arena() is arena

    def test_teardown_frees_everything(self):
        with use_arena() as inner:
            x = placeholder().retain()
            y = exp(x)
        assert inner.teardown() == 2
        assert not x.alive and not y.alive
        assert len(inner) == 0

    def test_use_arena_teardown(self):
        with use_arena(teardown=True) as inner:
            y = negate(placeholder())
        assert not y.alive
        assert inner.freed_count == inner.created_count == 2

    def test_teardown_releases_outer_operands(self, arena):
        x = placeholder().retain()
        with use_arena(teardown=True):
            negate(x)
            assert x.ref_count == 2
        assert x.ref_count == 1
        x.release()
        assert not x.alive
        assert len(arena) == 0


class TestGraphSummary:
    def test_diamond(self):
        x = placeholder()
        root = add(exp(x), negate(x))
        summary = graph_summary(root)
        assert summary["nodes"] == 4
        assert summary["edges"] == 4
        assert summary["placeholders"] == 1
        assert summary["constants"] == 0
        assert summary["operators"] == 3
        assert summary["max_fan_in"] == 2
        assert summary["max_fan_out"] == 2
        assert summary["operations"] == {"exp": 1, "negate": 1, "add": 1}

    def test_reachable_nodes_post_order(self):
        x = placeholder()
        c = constant(2.0)
        a = multiply(x, c)
        root = exp(a)
        assert reachable_nodes(root) == [x, c, a, root]
