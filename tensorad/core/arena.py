# tensorad/core/arena.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Dict, List, Optional

from .errors import NodeLifetimeError, violation

logger = logging.getLogger(__name__)


class Arena:
    """
    Registry of the graph nodes created while it is active.

    Nodes are normally freed one by one through reference counting; the arena
    records every free (so a second free of the same node is caught) and can
    tear down everything still alive in one deterministic pass.
    """
    def __init__(self):
        self.live: Dict[int, object] = {}   # id(node) -> node, creation order
        self.created_count = 0
        self.freed_count = 0

    def register(self, node) -> None:
        self.live[id(node)] = node
        self.created_count += 1

    def on_free(self, node) -> None:
        if self.live.pop(id(node), None) is None:
            raise violation(NodeLifetimeError(f"{node!r} freed twice"))
        self.freed_count += 1

    def teardown(self) -> int:
        """
        Free every node still alive, newest first, ignoring reference counts.
        References held on nodes of other arenas are released normally.
        Returns the number of nodes freed.
        """
        nodes: List = list(self.live.values())
        for node in reversed(nodes):
            if not node.alive:
                continue
            for operand in node.operands:
                if operand.arena is not self and operand.alive:
                    operand.release()
            node._free()
        logger.debug("arena %#x torn down: %d nodes freed", id(self), len(nodes))
        return len(nodes)

    def __len__(self) -> int:
        return len(self.live)


# Global arena every new node registers with
global_arena = Arena()


def current_arena() -> Arena:
    """The arena new nodes register with right now."""
    return global_arena


@contextmanager
def use_arena(arena: Optional[Arena] = None, *, teardown: bool = False):
    """
    Context manager to temporarily collect new nodes in a separate arena:
        with use_arena(teardown=True) as arena:
            ... build and evaluate a graph ...
        # every node built inside is freed here
    """
    global global_arena
    prev = global_arena
    current = arena if arena is not None else Arena()
    try:
        global_arena = current
        yield current
    finally:
        global_arena = prev
        if teardown:
            current.teardown()
