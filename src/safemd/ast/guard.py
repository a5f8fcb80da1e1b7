#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/ast/guard.py
"""Depth guard bounding AST nesting.

The guard runs right after parsing and before any other pass, so a document
that is too deep never reaches the post-processors or the HTML transformer.
Traversal uses an explicit stack: its cost is linear in the node count and it
does not consume interpreter stack however deep the input is.
"""

from __future__ import annotations

import logging
from typing import Optional

from safemd.ast.nodes import Node, get_node_children
from safemd.exceptions import ComplexityExceeded

logger = logging.getLogger(__name__)


def measure_depth(root: Node, stop_above: Optional[int] = None) -> int:
    """Compute the maximum node depth of a tree.

    The root has depth 0 and every child is one deeper than its parent.

    Parameters
    ----------
    root : Node
        Root of the tree
    stop_above : int, optional
        Return as soon as a node deeper than this value is found

    Returns
    -------
    int
        Maximum depth, or the first depth found beyond ``stop_above``

    Examples
    --------
    >>> measure_depth(Document(children=[Paragraph(content=[Text("hi")])]))
    2

    """
    deepest = 0
    stack: list[tuple[Node, int]] = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if depth > deepest:
            deepest = depth
            if stop_above is not None and depth > stop_above:
                return depth
        for child in get_node_children(node):
            stack.append((child, depth + 1))
    return deepest


def check_depth(root: Node, limit: int) -> Node:
    """Validate that a tree is no deeper than ``limit``.

    Parameters
    ----------
    root : Node
        Root of the tree
    limit : int
        Maximum allowed depth; a tree of exactly this depth passes

    Returns
    -------
    Node
        The unchanged root

    Raises
    ------
    ComplexityExceeded
        If any node lies deeper than ``limit``

    """
    depth = measure_depth(root, stop_above=limit)
    if depth > limit:
        logger.debug("Rejecting document: depth %d exceeds limit %d", depth, limit)
        raise ComplexityExceeded(depth=depth, max_depth=limit)
    return root


class DepthGuard:
    """Reusable depth check bound to one limit."""

    def __init__(self, limit: int):
        self.limit = limit

    def check(self, root: Node) -> Node:
        return check_depth(root, self.limit)
