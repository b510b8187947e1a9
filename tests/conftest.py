"""Shared fixtures for the tensorad test-suite."""

import numpy as np
import pytest

from tensorad import BindingTable, Tensor, evaluate, use_arena, use_config


@pytest.fixture(autouse=True)
def arena():
    """Every test builds its nodes in a private arena (torn down afterwards) under a private config."""
    with use_arena(teardown=True) as a, use_config():
        yield a


def bind(inputs):
    """Fresh binding table holding copies of {placeholder: Tensor}."""
    return BindingTable.from_pairs(*((k, v.copy()) for k, v in inputs.items()))


@pytest.fixture
def bindings():
    return bind


@pytest.fixture
def numerical_jacobian():
    """
    Central-difference Jacobian d(root)/d(leaf) laid out like the engine's:
    shape out.shape ++ leaf.shape, column-major buffer.
    """
    def _jacobian(root, inputs, leaf, h=1e-6):
        base = inputs[leaf]
        out = evaluate(root, bind(inputs))
        mat = np.zeros((out.size, base.size))
        for j in range(base.size):
            plus, minus = base.copy(), base.copy()
            plus.data[j] += h
            minus.data[j] -= h
            y_plus = evaluate(root, bind({**inputs, leaf: plus}))
            y_minus = evaluate(root, bind({**inputs, leaf: minus}))
            mat[:, j] = (y_plus.data - y_minus.data) / (2.0 * h)
        return Tensor(out.shape + base.shape, mat.ravel(order="F"))
    return _jacobian
