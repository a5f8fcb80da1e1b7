#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/ast/visitors.py
"""Visitor pattern implementation for AST traversal.

Visitors separate the passes of the pipeline (footnote numbering, figure
promotion, resolvers) from the node structure itself. Every ``visit_*``
method defaults to :meth:`NodeVisitor.generic_visit`, so a visitor only
overrides the node kinds it cares about.

"""

from __future__ import annotations

from typing import Any

from safemd.ast.nodes import (
    BlockQuote,
    Code,
    CodeBlock,
    Document,
    Embed,
    Emphasis,
    Figure,
    FootnoteDefinition,
    FootnoteReference,
    Heading,
    Html,
    Image,
    LineBreak,
    Link,
    List,
    ListItem,
    Math,
    Mention,
    Node,
    Paragraph,
    Strikethrough,
    Strong,
    Table,
    TableCell,
    TableRow,
    Text,
    ThematicBreak,
    get_node_children,
)


class NodeVisitor:
    """Base class for AST node visitors.

    Examples
    --------
    Simple visitor that counts nodes:

        >>> class NodeCounter(NodeVisitor):
        ...     def __init__(self):
        ...         self.count = 0
        ...
        ...     def generic_visit(self, node):
        ...         self.count += 1
        ...         super().generic_visit(node)

    """

    def visit(self, node: Node) -> Any:
        """Dispatch ``node`` to its ``visit_*`` method."""
        return node.accept(self)

    def generic_visit(self, node: Node) -> Any:
        """Visit every child of ``node`` in document order."""
        for child in get_node_children(node):
            child.accept(self)
        return None

    def visit_document(self, node: Document) -> Any:
        return self.generic_visit(node)

    def visit_heading(self, node: Heading) -> Any:
        return self.generic_visit(node)

    def visit_paragraph(self, node: Paragraph) -> Any:
        return self.generic_visit(node)

    def visit_code_block(self, node: CodeBlock) -> Any:
        return self.generic_visit(node)

    def visit_block_quote(self, node: BlockQuote) -> Any:
        return self.generic_visit(node)

    def visit_list(self, node: List) -> Any:
        return self.generic_visit(node)

    def visit_list_item(self, node: ListItem) -> Any:
        return self.generic_visit(node)

    def visit_table(self, node: Table) -> Any:
        return self.generic_visit(node)

    def visit_table_row(self, node: TableRow) -> Any:
        return self.generic_visit(node)

    def visit_table_cell(self, node: TableCell) -> Any:
        return self.generic_visit(node)

    def visit_thematic_break(self, node: ThematicBreak) -> Any:
        return self.generic_visit(node)

    def visit_footnote_definition(self, node: FootnoteDefinition) -> Any:
        return self.generic_visit(node)

    def visit_figure(self, node: Figure) -> Any:
        return self.generic_visit(node)

    def visit_embed(self, node: Embed) -> Any:
        return self.generic_visit(node)

    def visit_math(self, node: Math) -> Any:
        return self.generic_visit(node)

    def visit_html(self, node: Html) -> Any:
        return self.generic_visit(node)

    def visit_text(self, node: Text) -> Any:
        return self.generic_visit(node)

    def visit_emphasis(self, node: Emphasis) -> Any:
        return self.generic_visit(node)

    def visit_strong(self, node: Strong) -> Any:
        return self.generic_visit(node)

    def visit_strikethrough(self, node: Strikethrough) -> Any:
        return self.generic_visit(node)

    def visit_code(self, node: Code) -> Any:
        return self.generic_visit(node)

    def visit_link(self, node: Link) -> Any:
        return self.generic_visit(node)

    def visit_image(self, node: Image) -> Any:
        return self.generic_visit(node)

    def visit_line_break(self, node: LineBreak) -> Any:
        return self.generic_visit(node)

    def visit_footnote_reference(self, node: FootnoteReference) -> Any:
        return self.generic_visit(node)

    def visit_mention(self, node: Mention) -> Any:
        return self.generic_visit(node)
