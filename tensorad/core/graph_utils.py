# tensorad/core/graph_utils.py
"""
Graph inspection helpers: distinct reachable nodes and a structural summary.
"""
import logging
from collections import Counter
from typing import Dict, List

from .node import Node, NodeKind

logger = logging.getLogger(__name__)


def reachable_nodes(root: Node) -> List[Node]:
    """
    Distinct nodes reachable from `root`, in post-order (operands before the
    operators that use them, root last).
    """
    order: List[Node] = []
    seen = set()
    stack = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if expanded:
            order.append(node)
            continue
        if node in seen:
            continue
        seen.add(node)
        stack.append((node, True))
        for operand in reversed(node.operands):
            if operand not in seen:
                stack.append((operand, False))
    return order


def graph_summary(root: Node) -> Dict:
    """
    Structural statistics of the graph under `root`.

    Returns:
        Dictionary with node/edge counts, fan-in/fan-out maxima and an
        operator breakdown:
        {
            'nodes': int, 'edges': int,
            'placeholders': int, 'constants': int, 'operators': int,
            'max_fan_in': int, 'max_fan_out': int,
            'operations': {op_tag: count}
        }
    """
    nodes = reachable_nodes(root)
    fan_out = Counter()
    for node in nodes:
        for operand in node.operands:
            fan_out[operand] += 1
    kinds = Counter(node.kind for node in nodes)
    summary = {
        'nodes': len(nodes),
        'edges': sum(len(node.operands) for node in nodes),
        'placeholders': kinds[NodeKind.PLACEHOLDER],
        'constants': kinds[NodeKind.CONSTANT],
        'operators': kinds[NodeKind.OPERATOR],
        'max_fan_in': max((len(node.operands) for node in nodes), default=0),
        'max_fan_out': max(fan_out.values(), default=0),
        'operations': dict(Counter(node.op_tag for node in nodes if not node.is_leaf)),
    }
    logger.debug("graph summary for %r: %s", root, summary)
    return summary
