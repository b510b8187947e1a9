# tensorad/core/tensor.py
"""
Dense, rank-annotated, column-major tensor.

Layout
------
The flat buffer is column-major: the FIRST shape dimension varies fastest,

    offset = sum_i index[i] * prod(shape[0:i])

so a rank-2 tensor of shape (m, n) is an m x n matrix stored column by column.
A rank-0 tensor has shape () and a single element.

Every tensor owns its buffer; `copy()` is deep. Operators and the chain rule
build new tensors and never mutate their inputs.

The single computational primitive is `contract(x0, x1, overwrap)`, the
generalized ("batched") matrix product used both by `matmul`-style operators
and by every chain-rule step of the engine.
"""
from __future__ import annotations
import logging
from numbers import Real
from typing import Callable, Sequence, Tuple, Union

import numpy as np

from . import config as config_mod  # module access so use_config() is honoured
from .errors import ShapeMismatch, require

logger = logging.getLogger(__name__)

Shape = Tuple[int, ...]
Index = Union[int, Sequence[int]]


def size_of(shape: Sequence[int]) -> int:
    """Product of the dimensions (1 for rank 0)."""
    size = 1
    for dim in shape:
        size *= int(dim)
    return size


def _as_shape(shape) -> Shape:
    if shape is None:
        return ()
    if isinstance(shape, (int, np.integer)):
        shape = (shape,)
    dims = tuple(int(d) for d in shape)
    require(all(d >= 0 for d in dims), ShapeMismatch, f"negative dimension in shape {dims}")
    return dims


def _check_real(value):
    if not isinstance(value, (Real, np.number)) or isinstance(value, (bool, np.bool_)):
        raise TypeError(f"Tensor values must be real numbers, but got {type(value)}")


class Tensor:
    """
    Column-major multi-dimensional array of floating point values.

    Attributes
    ----------
    shape : tuple[int, ...]
        Dimensions, first one fastest-varying in `data`. () for rank 0.
    data : np.ndarray
        Flat 1-D buffer of `size` elements in `config.dtype`.
    """

    __slots__ = ("shape", "data")

    def __init__(self, shape=(), data=None):
        self.shape = _as_shape(shape)
        size = size_of(self.shape)
        dtype = config_mod.config.dtype
        if data is None:
            self.data = np.empty(size, dtype=dtype)
        else:
            # Caller's buffer is copied: the tensor is its only owner
            arr = np.array(data, dtype=dtype)
            if arr.ndim > 1:
                # Nested data is indexed logically, like from_array
                require(arr.shape == self.shape, ShapeMismatch,
                        f"nested data of shape {arr.shape} does not match shape {self.shape}")
            buf = arr.reshape(-1, order="F")
            require(buf.size == size, ShapeMismatch,
                    f"buffer of {buf.size} elements does not fit shape {self.shape}")
            self.data = buf

    @classmethod
    def _wrap(cls, shape: Shape, buf: np.ndarray) -> "Tensor":
        """Adopt a freshly computed flat buffer without copying."""
        obj = cls.__new__(cls)
        obj.shape = shape
        obj.data = buf
        return obj

    # ---------------- construction primitives ---------------- #
    @classmethod
    def create(cls, shape=()) -> "Tensor":
        """Uninitialized tensor of the given shape."""
        return cls(shape)

    @classmethod
    def full(cls, shape, value) -> "Tensor":
        """Tensor with every element set to `value`."""
        _check_real(value)
        shape = _as_shape(shape)
        return cls._wrap(shape, np.full(size_of(shape), value, dtype=config_mod.config.dtype))

    @classmethod
    def scalar(cls, value) -> "Tensor":
        return cls.full((), value)

    @classmethod
    def diagonal_full(cls, half_shape, value) -> "Tensor":
        """
        Identity-like tensor of shape `half_shape ++ half_shape`.

        Read as a square P x P matrix (P = prod(half_shape)) it holds `value` on
        the diagonal and 0 elsewhere. This is the Jacobian of the identity map
        scaled by `value`; for rank 0 it is the single value itself.
        """
        _check_real(value)
        half_shape = _as_shape(half_shape)
        side = size_of(half_shape)
        buf = np.zeros(side * side, dtype=config_mod.config.dtype)
        buf[::side + 1] = value
        return cls._wrap(half_shape + half_shape, buf)

    @classmethod
    def diagonal(cls, half_shape, values) -> "Tensor":
        """
        Like `diagonal_full`, but the diagonal carries one value per element of
        a `half_shape` tensor (given as a flat column-major sequence). This is
        the Jacobian of any elementwise map.
        """
        half_shape = _as_shape(half_shape)
        side = size_of(half_shape)
        values = np.asarray(values, dtype=config_mod.config.dtype).reshape(-1)
        require(values.size == side, ShapeMismatch,
                f"{values.size} diagonal values for half shape {half_shape}")
        buf = np.zeros(side * side, dtype=config_mod.config.dtype)
        buf[::side + 1] = values
        return cls._wrap(half_shape + half_shape, buf)

    @classmethod
    def from_array(cls, array) -> "Tensor":
        """
        Build a tensor from a numpy array (or nested sequence / number).
        Logical indices are preserved: t[i, j] == array[i, j].
        """
        if isinstance(array, (Real, np.number)):
            _check_real(array)
        elif not isinstance(array, (list, tuple, np.ndarray)):
            raise TypeError(
                f"Tensor.from_array only accepts numeric types (int, float, list, tuple, ndarray), "
                f"but got {type(array)}"
            )
        arr = np.asarray(array, dtype=config_mod.config.dtype)
        return cls._wrap(tuple(arr.shape), arr.flatten(order="F"))

    def to_array(self) -> np.ndarray:
        """Return an independent numpy array with the same logical indexing."""
        return self.data.reshape(self.shape, order="F").copy()

    def copy(self) -> "Tensor":
        return Tensor._wrap(self.shape, self.data.copy())

    # ---------------- attributes ---------------- #
    @property
    def rank(self) -> int:
        return len(self.shape)

    @property
    def size(self) -> int:
        return size_of(self.shape)

    def item(self) -> float:
        """The value of a single-element tensor."""
        require(self.data.size == 1, ShapeMismatch,
                f"item() needs exactly one element, tensor has shape {self.shape}")
        return float(self.data[0])

    # ---------------- element access ---------------- #
    def offset(self, index: Index) -> int:
        """Flat offset of a multi-index (bounds checked when debug_checks is on)."""
        if isinstance(index, (int, np.integer)):
            index = (index,)
        index = tuple(index)
        require(len(index) == self.rank, ShapeMismatch,
                f"index {index} has {len(index)} components, tensor rank is {self.rank}")
        if config_mod.config.debug_checks:
            for i, (k, dim) in enumerate(zip(index, self.shape)):
                require(0 <= k < dim, ShapeMismatch,
                        f"index {index} out of bounds for shape {self.shape} (axis {i})")
        offset = 0
        stride = 1
        for k, dim in zip(index, self.shape):
            offset += int(k) * stride
            stride *= dim
        return offset

    def view(self, index: Index) -> float:
        """Value of the element at `index`."""
        return float(self.data[self.offset(index)])

    def get(self, index: Index) -> np.ndarray:
        """Writable one-element view into the buffer at `index`."""
        off = self.offset(index)
        return self.data[off:off + 1]

    def set(self, index: Index, value) -> None:
        self.data[self.offset(index)] = value

    def __getitem__(self, index: Index) -> float:
        return self.view(index)

    def __setitem__(self, index: Index, value) -> None:
        self.set(index, value)

    # ---------------- helpers ---------------- #
    def matrix(self, front_rank: int) -> np.ndarray:
        """
        View the buffer as a column-major matrix whose rows are the leading
        `front_rank` dimensions and whose columns are the remaining ones.
        """
        rows = size_of(self.shape[:front_rank])
        cols = size_of(self.shape[front_rank:])
        return self.data.reshape(rows, cols, order="F")

    def equals(self, other: "Tensor") -> bool:
        """Same shape and identical elements."""
        return self.shape == other.shape and bool(np.array_equal(self.data, other.data))

    def __repr__(self):
        if self.rank == 0:
            return f"Tensor(shape=(), value={self.data[0]!r})"
        return f"Tensor(shape={self.shape}, data={self.to_array().tolist()!r})"


# ---------------- generalized contraction ---------------- #
def contract(x0: Tensor, x1: Tensor, overwrap: int) -> Tensor:
    """
    Generalized matrix multiplication over `overwrap` shared axes.

    The trailing `overwrap` dims of x0 must equal the leading `overwrap` dims of
    x1. x0 is flattened to (front, contracted) and x1 to (contracted, back);
    their product is reshaped to x0.shape[:-overwrap] ++ x1.shape[overwrap:].

    E.g. x0 = (2, 3, 5, 1), x1 = (5, 1, 2), overwrap = 2 treats x0 as a
    (2*3) x (5*1) matrix, x1 as a (5*1) x 2 matrix and returns shape (2, 3, 2).
    overwrap = 1 on rank-2 operands is ordinary matrix multiplication;
    overwrap = 0 is the outer product.
    """
    overwrap = int(overwrap)
    require(0 <= overwrap <= min(x0.rank, x1.rank), ShapeMismatch,
            f"cannot contract {overwrap} axes of shapes {x0.shape} and {x1.shape}")
    front_rank = x0.rank - overwrap
    if config_mod.config.debug_checks:
        require(x0.shape[front_rank:] == x1.shape[:overwrap], ShapeMismatch,
                f"contracted axes differ: {x0.shape[front_rank:]} vs {x1.shape[:overwrap]}")
    y = np.dot(x0.matrix(front_rank), x1.matrix(overwrap))
    return Tensor._wrap(x0.shape[:front_rank] + x1.shape[overwrap:], y.reshape(-1, order="F"))


def matmul(x0: Tensor, x1: Tensor) -> Tensor:
    """Ordinary matrix multiplication (contraction over one axis)."""
    return contract(x0, x1, 1)


# ---------------- elementwise with scalar broadcasting ---------------- #
def broadcast_shape(x0: Tensor, x1: Tensor) -> Shape:
    """
    Output shape of an elementwise binary op: operands must have equal ranks
    (and, with debug_checks, equal shapes) or one of them must be rank 0.
    """
    require(x0.rank == x1.rank or x0.rank == 0 or x1.rank == 0, ShapeMismatch,
            f"elementwise operands need equal ranks or a scalar, got {x0.shape} and {x1.shape}")
    if x0.rank == x1.rank and config_mod.config.debug_checks:
        require(x0.shape == x1.shape, ShapeMismatch,
                f"elementwise operands differ in shape: {x0.shape} vs {x1.shape}")
    return x1.shape if x0.rank == 0 else x0.shape


def broadcast_binary(f: Callable[[np.ndarray, np.ndarray], np.ndarray],
                     x0: Tensor, x1: Tensor) -> Tensor:
    """Apply a vectorised f(a, b) to flat buffers, broadcasting a rank-0 side."""
    shape = broadcast_shape(x0, x1)
    y = np.asarray(f(x0.data, x1.data), dtype=config_mod.config.dtype)
    return Tensor._wrap(shape, np.broadcast_to(y, (size_of(shape),)).copy())


def add(x0: Tensor, x1: Tensor) -> Tensor:
    """Elementwise sum; used to fold multi-path gradient contributions."""
    return broadcast_binary(np.add, x0, x1)
