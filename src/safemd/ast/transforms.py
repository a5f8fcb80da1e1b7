#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/ast/transforms.py
"""AST transformation utilities.

Post-processors subclass :class:`NodeTransformer` and override the
``visit_*`` methods of the node kinds they rewrite. A visit method may return
a replacement node, a list of nodes to splice in place of the original, or
None to remove the node.

Examples
--------
Upper-case every text leaf:

    >>> class UppercaseTransformer(NodeTransformer):
    ...     def visit_text(self, node):
    ...         return Text(content=node.content.upper())
    >>>
    >>> new_doc = UppercaseTransformer().transform(doc)

"""

from __future__ import annotations

import copy
from typing import Union

from safemd.ast.nodes import Document, FootnoteDefinition, Node, get_node_children, replace_node_children
from safemd.ast.visitors import NodeVisitor

TransformResult = Union[Node, list[Node], None]


class NodeTransformer(NodeVisitor):
    """Base class for transforming AST nodes.

    The transformer builds a new tree; the input tree is left untouched.
    """

    def transform(self, node: Node) -> TransformResult:
        """Transform an AST node.

        Parameters
        ----------
        node : Node
            Node to transform

        Returns
        -------
        Node, list of Node, or None
            Transformed node, nodes to splice in its place, or None to remove

        """
        return node.accept(self)

    def _transform_children(self, children: list[Node]) -> list[Node]:
        """Transform a list of child nodes.

        Parameters
        ----------
        children : list of Node
            Children to transform

        Returns
        -------
        list of Node
            Transformed children, with lists spliced and None values dropped

        """
        result: list[Node] = []
        for child in children:
            transformed = self.transform(child)
            if transformed is None:
                continue
            if isinstance(transformed, list):
                result.extend(transformed)
            else:
                result.append(transformed)
        return result

    def generic_visit(self, node: Node) -> Node:
        """Transform nodes generically using traversal helpers.

        Parameters
        ----------
        node : Node
            Node to transform

        Returns
        -------
        Node
            Copy of the node with transformed children

        """
        children = get_node_children(node)
        if not children:
            return copy.copy(node)

        return replace_node_children(node, self._transform_children(children))

    def visit_document(self, node: Document) -> Document:
        """Transform a Document node, keeping body and footnotes apart."""
        footnotes = [f for f in self._transform_children(list(node.footnotes)) if isinstance(f, FootnoteDefinition)]
        return Document(
            children=self._transform_children(node.children),
            footnotes=footnotes,
            metadata=node.metadata.copy(),
            source_location=node.source_location,
        )
