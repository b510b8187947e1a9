# tensorad/core/accumulation.py

#-----------------------------------------------------------------------------
# differentiate() returns one Jacobian per path from the root to a leaf. The
# helpers below fold those contributions into the total derivative per leaf.
#-----------------------------------------------------------------------------
from __future__ import annotations
from functools import reduce
from typing import Dict, Iterable, Optional

from .binding import BindingTable
from .engine import differentiate
from .errors import MissingBinding, violation
from .node import Node
from .tensor import Tensor, add


def total_gradient(table: BindingTable, leaf) -> Tensor:
    """Elementwise sum of every contribution recorded for `leaf`."""
    contributions = table.get_all(leaf)
    if not contributions:
        raise violation(MissingBinding(f"no gradient contribution for {leaf!r}"))
    return reduce(add, contributions[1:], contributions[0].copy())


def accumulate(table: BindingTable) -> BindingTable:
    """New table holding exactly one summed entry per leaf, in first-seen order."""
    keys = table.keys()
    summed = BindingTable(len(keys))
    for leaf in keys:
        summed.insert(leaf, total_gradient(table, leaf))
    return summed


def gradients(root: Node, bindings: BindingTable, wrt: Optional[Iterable[Node]] = None,
              *, consume: bool = True) -> Dict[Node, Tensor]:
    """
    Total derivative of `root` with respect to each leaf reached.

    Returns
    -------
    dict {leaf: Tensor}  # one summed Jacobian per leaf, in first-seen order
    """
    raw = differentiate(root, bindings, wrt=wrt, consume=consume)
    try:
        return {leaf: total_gradient(raw, leaf) for leaf in raw.keys()}
    finally:
        raw.destroy()
