"""Filtered pre-order traversal over an external AST."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, Callable, List, Optional

from .models import AstNode

logger = logging.getLogger(__name__)

Visitor = Callable[[AstNode], bool]


@dataclass
class TraversalStats:
    visited: int = 0
    matched: int = 0


def flatten(root: AstNode, ignore_kinds: Optional[AbstractSet[str]] = None) -> List[AstNode]:
    """Return *root* and its retained descendants in pre-order.

    A child from a system header is dropped along with its subtree. A node
    whose kind is in *ignore_kinds* is kept but its children are not
    expanded; this holds for the root too, which is always kept.
    """
    result: List[AstNode] = []
    stack = [root]
    while stack:
        node = stack.pop()
        result.append(node)
        if ignore_kinds is not None and node.kind in ignore_kinds:
            continue
        children = [child for child in node.children() if not child.is_in_system_header()]
        stack.extend(reversed(children))
    return result


def traverse(
    root: AstNode,
    visitor: Visitor,
    ignore_kinds: Optional[AbstractSet[str]] = None,
) -> TraversalStats:
    """Call *visitor* once per node of :func:`flatten` and count its hits.

    The visitor's return value is only tallied; it never changes which nodes
    are visited.
    """
    stats = TraversalStats()
    for node in flatten(root, ignore_kinds):
        stats.visited += 1
        if visitor(node):
            stats.matched += 1
    logger.debug("Visited %d nodes, %d matched", stats.visited, stats.matched)
    return stats
