"""Tests for the column-major Tensor and the generalized contraction."""

import numpy as np
import pytest

from tensorad import Tensor, contract, use_config
from tensorad.core.errors import ShapeMismatch
from tensorad.core.tensor import add, broadcast_shape, matmul, size_of


class TestCreation:
    def test_create_shape(self):
        t = Tensor.create((2, 3, 4))
        assert t.shape == (2, 3, 4)
        assert t.rank == 3
        assert t.size == 24
        assert t.data.shape == (24,)

    def test_full(self):
        t = Tensor.full((2, 2), 7.0)
        np.testing.assert_allclose(t.to_array(), np.full((2, 2), 7.0))

    def test_scalar_is_rank_zero(self):
        t = Tensor.scalar(3.5)
        assert t.shape == ()
        assert t.rank == 0
        assert t.size == 1
        assert t.item() == pytest.approx(3.5)

    def test_size_of_empty_shape(self):
        assert size_of(()) == 1
        assert size_of((2, 0, 3)) == 0

    def test_diagonal_full(self):
        t = Tensor.diagonal_full((2, 3), 2.0)
        assert t.shape == (2, 3, 2, 3)
        np.testing.assert_allclose(t.matrix(2), 2.0 * np.eye(6))

    def test_diagonal_full_rank_zero(self):
        t = Tensor.diagonal_full((), 4.0)
        assert t.shape == ()
        assert t.item() == pytest.approx(4.0)

    def test_diagonal_values(self):
        t = Tensor.diagonal((3,), [1.0, 2.0, 3.0])
        np.testing.assert_allclose(t.to_array(), np.diag([1.0, 2.0, 3.0]))

    def test_diagonal_wrong_count(self):
        with pytest.raises(ShapeMismatch):
            Tensor.diagonal((3,), [1.0, 2.0])

    def test_buffer_must_fit_shape(self):
        with pytest.raises(ShapeMismatch):
            Tensor((2, 2), [1.0, 2.0, 3.0])

    def test_negative_dimension(self):
        with pytest.raises(ShapeMismatch):
            Tensor.create((2, -1))

    def test_non_numeric_value(self):
        with pytest.raises(TypeError):
            Tensor.full((2,), "a")
        with pytest.raises(TypeError):
            Tensor.from_array("abc")

    def test_dtype_follows_config(self):
        with use_config(dtype=np.float32):
            assert Tensor.full((2,), 1.0).data.dtype == np.float32
        assert Tensor.full((2,), 1.0).data.dtype == np.float64

    def test_item_needs_single_element(self):
        with pytest.raises(ShapeMismatch):
            Tensor.full((2,), 1.0).item()


class TestLayout:
    def test_offset_is_column_major(self):
        t = Tensor.create((2, 3, 4))
        assert t.offset((0, 0, 0)) == 0
        assert t.offset((1, 0, 0)) == 1
        assert t.offset((0, 1, 0)) == 2
        assert t.offset((1, 2, 3)) == 1 + 2 * 2 + 3 * 6

    def test_from_array_keeps_logical_indices(self):
        arr = np.arange(6.0).reshape(2, 3)
        t = Tensor.from_array(arr)
        assert t.shape == (2, 3)
        assert t[1, 2] == arr[1, 2]
        assert t[0, 1] == arr[0, 1]
        np.testing.assert_allclose(t.data, arr.ravel(order="F"))
        np.testing.assert_allclose(t.to_array(), arr)

    def test_set_and_view(self):
        t = Tensor.full((2, 2), 0.0)
        t[1, 0] = 5.0
        t.set((0, 1), 6.0)
        assert t.view((1, 0)) == 5.0
        np.testing.assert_allclose(t.data, [0.0, 5.0, 6.0, 0.0])

    def test_get_is_writable(self):
        t = Tensor.full((2, 2), 0.0)
        t.get((1, 1))[0] = 9.0
        assert t[1, 1] == 9.0

    def test_rank_zero_index(self):
        t = Tensor.scalar(2.0)
        assert t[()] == 2.0

    def test_out_of_bounds_checked(self):
        t = Tensor.create((2, 3))
        with pytest.raises(ShapeMismatch):
            t.offset((2, 0))

    def test_out_of_bounds_unchecked_without_debug(self):
        t = Tensor.create((2, 3))
        with use_config(debug_checks=False):
            assert t.offset((2, 0)) == 2

    def test_index_rank_mismatch(self):
        with pytest.raises(ShapeMismatch):
            Tensor.create((2, 3)).offset((1,))

    def test_copy_is_independent(self):
        t = Tensor.from_array([1.0, 2.0])
        c = t.copy()
        c[0] = 10.0
        assert t[0] == 1.0
        assert c.shape == t.shape

    def test_constructor_copies_buffer(self):
        buf = np.array([1.0, 2.0])
        t = Tensor((2,), buf)
        buf[0] = 7.0
        assert t[0] == 1.0

    def test_constructor_nested_data_matches_from_array(self):
        nested = [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]
        t = Tensor((2, 3), nested)
        assert t[0, 1] == 2.0
        assert t.equals(Tensor.from_array(nested))

    def test_constructor_nested_shape_mismatch(self):
        with pytest.raises(ShapeMismatch):
            Tensor((3, 2), [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])

    def test_equals(self):
        a = Tensor.from_array([1.0, 2.0])
        assert a.equals(a.copy())
        assert not a.equals(Tensor.from_array([[1.0, 2.0]]))


class TestContract:
    def test_matmul_matches_numpy(self):
        rng = np.random.default_rng(0)
        a, b = rng.normal(size=(3, 4)), rng.normal(size=(4, 5))
        y = matmul(Tensor.from_array(a), Tensor.from_array(b))
        assert y.shape == (3, 5)
        np.testing.assert_allclose(y.to_array(), a @ b)

    def test_overwrap_two(self):
        rng = np.random.default_rng(1)
        a, b = rng.normal(size=(2, 3, 5, 1)), rng.normal(size=(5, 1, 2))
        y = contract(Tensor.from_array(a), Tensor.from_array(b), 2)
        assert y.shape == (2, 3, 2)
        np.testing.assert_allclose(y.to_array(), np.tensordot(a, b, axes=([2, 3], [0, 1])))

    def test_overwrap_zero_is_outer_product(self):
        a, b = np.array([1.0, 2.0]), np.array([3.0, 4.0, 5.0])
        y = contract(Tensor.from_array(a), Tensor.from_array(b), 0)
        assert y.shape == (2, 3)
        np.testing.assert_allclose(y.to_array(), np.multiply.outer(a, b))

    def test_scalar_times_tensor(self):
        y = contract(Tensor.scalar(2.0), Tensor.from_array([1.0, 3.0]), 0)
        assert y.shape == (2,)
        np.testing.assert_allclose(y.data, [2.0, 6.0])

    def test_full_contraction_to_scalar(self):
        a = Tensor.from_array([1.0, 2.0, 3.0])
        y = contract(a, a, 1)
        assert y.shape == ()
        assert y.item() == pytest.approx(14.0)

    def test_mismatched_axes(self):
        with pytest.raises(ShapeMismatch):
            contract(Tensor.create((2, 3)), Tensor.create((4, 2)), 1)

    def test_too_many_axes(self):
        with pytest.raises(ShapeMismatch):
            contract(Tensor.create((2,)), Tensor.create((2, 3)), 2)


class TestBroadcast:
    def test_equal_shapes(self):
        y = add(Tensor.from_array([1.0, 2.0]), Tensor.from_array([3.0, 4.0]))
        np.testing.assert_allclose(y.data, [4.0, 6.0])

    def test_scalar_left(self):
        y = add(Tensor.scalar(1.0), Tensor.from_array([[1.0, 2.0], [3.0, 4.0]]))
        assert y.shape == (2, 2)
        np.testing.assert_allclose(y.to_array(), [[2.0, 3.0], [4.0, 5.0]])

    def test_scalar_right(self):
        y = add(Tensor.from_array([1.0, 2.0, 3.0]), Tensor.scalar(10.0))
        np.testing.assert_allclose(y.data, [11.0, 12.0, 13.0])

    def test_rank_mismatch(self):
        with pytest.raises(ShapeMismatch):
            broadcast_shape(Tensor.create((2,)), Tensor.create((2, 1)))

    def test_shape_mismatch(self):
        with pytest.raises(ShapeMismatch):
            add(Tensor.create((2,)), Tensor.create((3,)))

    def test_result_owns_buffer(self):
        s = Tensor.scalar(1.0)
        y = add(s, Tensor.from_array([1.0, 2.0]))
        y[0] = 100.0
        assert s.item() == 1.0
