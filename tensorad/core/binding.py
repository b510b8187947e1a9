# tensorad/core/binding.py
"""
Binding tables: multimaps from graph-node identity to Tensor.

The same key may appear more than once. This is how several derivative
contributions for one leaf (one per path through the graph) are represented.
Insertion order is kept. `get` returns the first value for a key and
`get_all` returns every value in insertion order.

Two roles share this container type:

    BindingTable  the caller-supplied environment (placeholder -> tensor) and
                  the gradient table returned by differentiate().
    Trace         the per-call forward-value memo written by evaluate(). It
                  reads placeholder values from its environment and never
                  writes to it.

A table passed to a consuming call (evaluate / differentiate) is destroyed by
that call. Any later use raises ConsumedTable.
"""
from __future__ import annotations
import logging
from typing import Dict, Iterator, List, Optional, Tuple

from . import config as config_mod
from .errors import ConsumedTable, MissingBinding, require, violation
from .tensor import Tensor

logger = logging.getLogger(__name__)


class BindingTable:
    """
    Multimap { node: Tensor } with explicit capacity and amortized doubling.

    Attributes
    ----------
    capacity : int
        Number of slots currently allocated.
    count : int
        Number of (key, value) entries stored.
    """

    def __init__(self, capacity: Optional[int] = None):
        if capacity is None:
            capacity = config_mod.config.initial_capacity
        require(capacity >= 0, message=f"capacity must be non-negative, got {capacity}")
        self.capacity = int(capacity)
        self.count = 0
        self._keys: List = [None] * self.capacity
        self._values: List[Optional[Tensor]] = [None] * self.capacity
        # key -> positions, so lookups do not scan the whole table
        self._positions: Dict[object, List[int]] = {}
        self._frozen = False
        self._destroyed = False

    @classmethod
    def from_pairs(cls, *pairs: Tuple[object, Tensor]) -> "BindingTable":
        """
        Build a table from (node, tensor) pairs:
            BindingTable.from_pairs((x0, t0), (x1, t1))
        The table takes ownership of the tensors.
        """
        table = cls(len(pairs))
        for key, value in pairs:
            table.insert(key, value)
        return table

    # ---------------- state ---------------- #
    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "BindingTable":
        """Make the table read-only (an immutable environment)."""
        self._check_alive()
        self._frozen = True
        return self

    def _check_alive(self):
        if self._destroyed:
            raise violation(ConsumedTable(
                "binding table was destroyed (it was passed to a consuming call)"))

    # ---------------- mutation ---------------- #
    def extend(self, offset: int) -> None:
        """Grow the capacity by `offset` slots, preserving the entries."""
        self._check_alive()
        require(offset >= 0, message=f"offset must be non-negative, got {offset}")
        self._keys.extend([None] * offset)
        self._values.extend([None] * offset)
        self.capacity += offset
        logger.debug("binding table %#x grown to capacity %d", id(self), self.capacity)

    def insert(self, key, value: Tensor) -> None:
        """Append a (key, value) entry. Doubles the capacity when it is exhausted."""
        self._check_alive()
        if self._frozen:
            raise violation(ConsumedTable("cannot insert into a frozen binding table"))
        if not isinstance(value, Tensor):
            raise TypeError(f"binding values must be Tensor, but got {type(value)}")
        if self.count == self.capacity:
            self.extend(max(self.capacity, 1))
        self._keys[self.count] = key
        self._values[self.count] = value
        self._positions.setdefault(key, []).append(self.count)
        self.count += 1

    def destroy(self) -> None:
        """Release every owned tensor, then the table itself."""
        if self._destroyed:
            return
        self._keys.clear()
        self._values.clear()
        self._positions.clear()
        self.count = 0
        self.capacity = 0
        self._destroyed = True

    # ---------------- lookup ---------------- #
    def get(self, key) -> Tensor:
        """First tensor associated with `key`; MissingBinding if absent."""
        self._check_alive()
        positions = self._positions.get(key)
        if not positions:
            raise violation(MissingBinding(f"no binding for {key!r}"))
        return self._values[positions[0]]

    def get_all(self, key) -> List[Tensor]:
        """Every tensor associated with `key`, in insertion order (possibly empty)."""
        self._check_alive()
        return [self._values[i] for i in self._positions.get(key, ())]

    def keys(self) -> List:
        """Distinct keys in order of first insertion."""
        self._check_alive()
        return list(self._positions)

    def items(self) -> Iterator[Tuple[object, Tensor]]:
        """Every (key, value) entry in insertion order, duplicates included."""
        self._check_alive()
        for i in range(self.count):
            yield self._keys[i], self._values[i]

    def values(self) -> List[Tensor]:
        self._check_alive()
        return self._values[:self.count]

    def __contains__(self, key) -> bool:
        self._check_alive()
        return key in self._positions

    def __len__(self) -> int:
        return self.count

    def __repr__(self):
        state = "destroyed" if self._destroyed else f"{self.count}/{self.capacity}"
        return f"{type(self).__name__}({state})"


class Trace(BindingTable):
    """
    Mutable forward-value memo for one evaluate/differentiate call.

    Operand outputs are inserted keyed by the operand node. Placeholder values
    are read from `environment`, which the trace never modifies.
    """

    def __init__(self, environment: BindingTable, capacity: Optional[int] = None):
        environment._check_alive()
        super().__init__(capacity)
        self.environment = environment

    def lookup_input(self, node) -> Tensor:
        return self.environment.get(node)
