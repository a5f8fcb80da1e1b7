#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/ast/utils.py
"""Small helpers for inspecting AST nodes."""

from __future__ import annotations

from typing import Union

from safemd.ast.nodes import Code, Node, Text, get_node_children


def extract_text(node_or_nodes: Union[Node, list[Node]], joiner: str = "") -> str:
    """Extract plain text from a node or list of nodes.

    Text and inline code content are concatenated in document order.

    Parameters
    ----------
    node_or_nodes : Node or list of Node
        A single node or list of nodes to extract text from
    joiner : str, default = ""
        String placed between the text of sibling nodes

    Returns
    -------
    str
        Concatenated text content

    Examples
    --------
    >>> extract_text(Paragraph(content=[Text("Figure: "), Strong(content=[Text("A")])]))
    'Figure: A'

    """
    if isinstance(node_or_nodes, list):
        return joiner.join(extract_text(node, joiner) for node in node_or_nodes)

    if isinstance(node_or_nodes, (Text, Code)):
        return node_or_nodes.content

    return joiner.join(extract_text(child, joiner) for child in get_node_children(node_or_nodes))


def merge_adjacent_text(nodes: list[Node]) -> list[Node]:
    """Merge runs of adjacent Text nodes into single nodes.

    The base grammar emits text in fragments; merging keeps the tree compact
    and lets the inline post-processors see whole runs of text.
    """
    merged: list[Node] = []
    for node in nodes:
        if isinstance(node, Text) and merged and isinstance(merged[-1], Text) and not merged[-1].metadata:
            merged[-1] = Text(content=merged[-1].content + node.content)
        else:
            merged.append(node)
    return merged
