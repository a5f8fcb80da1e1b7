#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/ast/__init__.py
"""Abstract Syntax Tree for safemd documents.

This package holds the node classes, traversal base classes, and the depth
guard that bounds tree nesting.
"""

from safemd.ast.guard import DepthGuard, check_depth, measure_depth
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
    SourceLocation,
    Strikethrough,
    Strong,
    Table,
    TableCell,
    TableRow,
    Text,
    ThematicBreak,
    get_node_children,
    replace_node_children,
)
from safemd.ast.transforms import NodeTransformer
from safemd.ast.utils import extract_text
from safemd.ast.visitors import NodeVisitor

__all__ = [
    "BlockQuote",
    "Code",
    "CodeBlock",
    "DepthGuard",
    "Document",
    "Embed",
    "Emphasis",
    "Figure",
    "FootnoteDefinition",
    "FootnoteReference",
    "Heading",
    "Html",
    "Image",
    "LineBreak",
    "Link",
    "List",
    "ListItem",
    "Math",
    "Mention",
    "Node",
    "NodeTransformer",
    "NodeVisitor",
    "Paragraph",
    "SourceLocation",
    "Strikethrough",
    "Strong",
    "Table",
    "TableCell",
    "TableRow",
    "Text",
    "ThematicBreak",
    "check_depth",
    "extract_text",
    "get_node_children",
    "measure_depth",
    "replace_node_children",
]
