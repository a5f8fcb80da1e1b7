#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/ast/nodes.py
"""AST node classes for document representation.

This module defines the node hierarchy produced by the parser and rewritten by
the post-processors before HTML emission. Each node represents a structural
or inline element of a markdown document.

Node Hierarchy
--------------
All nodes inherit from the base Node class and support the visitor pattern.

Block-level nodes represent structural document elements:
    - Document, Heading, Paragraph, CodeBlock, BlockQuote
    - List, ListItem, Table, TableRow, TableCell
    - ThematicBreak, FootnoteDefinition, Figure, Embed

Inline nodes represent text formatting:
    - Text, Emphasis, Strong, Strikethrough, Code
    - Link, Image, LineBreak
    - FootnoteReference, Mention

Nodes used at both levels:
    - Math, Html (distinguished by their ``inline`` flag)

Trees are created fresh for every render call and never shared between calls.

"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Literal, Optional

Alignment = Literal["left", "center", "right"]


@dataclass
class SourceLocation:
    """Source location information for AST nodes.

    Parameters
    ----------
    line : int or None, default = None
        Line number in the markdown source
    column : int or None, default = None
        Column number in the markdown source

    """

    line: Optional[int] = None
    column: Optional[int] = None


class Node(ABC):
    """Base class for all AST nodes.

    All document nodes inherit from this base class and support the visitor
    pattern for traversal and rendering.

    Parameters
    ----------
    metadata : dict, default = empty dict
        Arbitrary metadata associated with this node
    source_location : SourceLocation or None, default = None
        Information about where this node came from in the source

    """

    metadata: dict[str, Any]
    source_location: Optional[SourceLocation]

    @abstractmethod
    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this node.

        Parameters
        ----------
        visitor : Any
            A visitor object with visit_* methods

        Returns
        -------
        Any
            Result from the visitor's processing

        """
        pass


# ============================================================================
# Block-level Nodes
# ============================================================================


@dataclass
class Document(Node):
    """Root document node containing all other nodes.

    Parameters
    ----------
    children : list of Node, default = empty list
        Block-level nodes in the document
    footnotes : list of FootnoteDefinition, default = empty list
        Footnote definitions in rendering order. Filled by the footnote
        reorderer; before that pass, definitions sit in ``children`` at their
        source positions.
    metadata : dict, default = empty dict
        Document-level metadata
    source_location : SourceLocation or None, default = None
        Source location information

    """

    children: list[Node] = field(default_factory=list)
    footnotes: list[FootnoteDefinition] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this document.

        Parameters
        ----------
        visitor : Any
            A visitor object with visit_document method

        Returns
        -------
        Any
            Result from visitor.visit_document(self)

        """
        return visitor.visit_document(self)


@dataclass
class Heading(Node):
    """Heading node (h1-h6).

    Parameters
    ----------
    level : int
        Heading level (1-6, where 1 is most important)
    content : list of Node, default = empty list
        Inline nodes representing heading text
    metadata : dict, default = empty dict
        Heading metadata
    source_location : SourceLocation or None, default = None
        Source location information

    """

    level: int
    content: list[Node] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def __post_init__(self) -> None:
        """Validate heading level is between 1 and 6."""
        if not 1 <= self.level <= 6:
            raise ValueError(f"Heading level must be 1-6, got {self.level}")

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this heading."""
        return visitor.visit_heading(self)


@dataclass
class Paragraph(Node):
    """Paragraph node containing inline content.

    Parameters
    ----------
    content : list of Node, default = empty list
        Inline nodes representing paragraph content
    metadata : dict, default = empty dict
        Paragraph metadata
    source_location : SourceLocation or None, default = None
        Source location information

    """

    content: list[Node] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this paragraph."""
        return visitor.visit_paragraph(self)


@dataclass
class CodeBlock(Node):
    """Code block node with optional language identifier.

    Represents a fenced or indented code block. The content is opaque: no
    extension syntax is recognized inside it.

    Parameters
    ----------
    content : str
        Code content (not parsed as markdown)
    language : str or None, default = None
        Sanitized language identifier from the fence info string
    metadata : dict, default = empty dict
        Code block metadata (``info_string``, ``info_attrs``)
    source_location : SourceLocation or None, default = None
        Source location information

    """

    content: str
    language: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this code block."""
        return visitor.visit_code_block(self)


@dataclass
class BlockQuote(Node):
    """Block quote node containing other block elements.

    Parameters
    ----------
    children : list of Node, default = empty list
        Block-level nodes in the quote
    metadata : dict, default = empty dict
        Block quote metadata
    source_location : SourceLocation or None, default = None
        Source location information

    """

    children: list[Node] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this block quote."""
        return visitor.visit_block_quote(self)


@dataclass
class List(Node):
    """List node (ordered or unordered).

    Parameters
    ----------
    ordered : bool
        True for ordered lists, False for unordered
    items : list of ListItem, default = empty list
        List items
    start : int, default = 1
        Starting number for ordered lists
    tight : bool, default = True
        Whether list is tight (no blank lines between items)
    metadata : dict, default = empty dict
        List metadata
    source_location : SourceLocation or None, default = None
        Source location information

    """

    ordered: bool
    items: list[ListItem] = field(default_factory=list)
    start: int = 1
    tight: bool = True
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this list."""
        return visitor.visit_list(self)


@dataclass
class ListItem(Node):
    """List item node containing block content.

    Parameters
    ----------
    children : list of Node, default = empty list
        Block-level nodes in the list item
    metadata : dict, default = empty dict
        List item metadata
    source_location : SourceLocation or None, default = None
        Source location information

    """

    children: list[Node] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this list item."""
        return visitor.visit_list_item(self)


@dataclass
class Table(Node):
    """Table node with optional header.

    Parameters
    ----------
    header : TableRow or None, default = None
        Header row
    rows : list of TableRow, default = empty list
        Body rows
    alignments : list of {'left', 'center', 'right', None}, default = empty list
        Column alignments
    metadata : dict, default = empty dict
        Table metadata
    source_location : SourceLocation or None, default = None
        Source location information

    """

    header: Optional[TableRow] = None
    rows: list[TableRow] = field(default_factory=list)
    alignments: list[Optional[Alignment]] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this table."""
        return visitor.visit_table(self)


@dataclass
class TableRow(Node):
    """Table row node containing cells."""

    cells: list[TableCell] = field(default_factory=list)
    is_header: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this table row."""
        return visitor.visit_table_row(self)


@dataclass
class TableCell(Node):
    """Table cell node containing inline content."""

    content: list[Node] = field(default_factory=list)
    alignment: Optional[Alignment] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this table cell."""
        return visitor.visit_table_cell(self)


@dataclass
class ThematicBreak(Node):
    """Thematic break node (horizontal rule)."""

    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this thematic break."""
        return visitor.visit_thematic_break(self)


@dataclass
class FootnoteDefinition(Node):
    """Footnote definition node (block).

    Represents a footnote definition written as ``[^id]: content``.

    Parameters
    ----------
    identifier : str
        Footnote identifier as written in the source
    content : list of Node, default = empty list
        Block-level content of the footnote
    index : int or None, default = None
        Display number, assigned by first-reference order. None until the
        footnote reorderer has run.
    metadata : dict, default = empty dict
        Footnote definition metadata
    source_location : SourceLocation or None, default = None
        Source location information

    """

    identifier: str
    content: list[Node] = field(default_factory=list)
    index: Optional[int] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this footnote definition."""
        return visitor.visit_footnote_definition(self)


@dataclass
class Figure(Node):
    """Figure node wrapping a promoted image.

    Produced by the figure promoter from a paragraph holding a single image.

    Parameters
    ----------
    image : Image
        The promoted image
    caption : list of Node or None, default = None
        Inline caption content taken from a ``Figure:`` paragraph. None means
        the caption falls back to the image alt text.
    metadata : dict, default = empty dict
        Figure metadata
    source_location : SourceLocation or None, default = None
        Source location information

    """

    image: Image
    caption: Optional[list[Node]] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this figure."""
        return visitor.visit_figure(self)


@dataclass
class Embed(Node):
    """Embedded external media, written as ``!(url)``.

    Parameters
    ----------
    url : str
        Page URL written by the author
    src : str or None, default = None
        Trusted player URL, set by the embed resolver
    provider : str or None, default = None
        Name of the matching provider
    title : str or None, default = None
        Title fetched from the provider's oEmbed endpoint
    width, height : int or None
        iframe size
    metadata : dict, default = empty dict
        Embed metadata
    source_location : SourceLocation or None, default = None
        Source location information

    """

    url: str
    src: Optional[str] = None
    provider: Optional[str] = None
    title: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this embed."""
        return visitor.visit_embed(self)


@dataclass
class Math(Node):
    """Math node, inline (``$...$``) or display (``$$...$$``).

    Parameters
    ----------
    content : str
        TeX source without delimiters
    inline : bool, default = True
        Inline math when True, display block otherwise
    metadata : dict, default = empty dict
        Math metadata; the math resolver records ``tex_extensions`` here
    source_location : SourceLocation or None, default = None
        Source location information

    """

    content: str
    inline: bool = True
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this math node."""
        return visitor.visit_math(self)


@dataclass
class Html(Node):
    """Raw HTML written by the author.

    The content is parsed into the HTML tree and then sanitized like any
    other output.

    Parameters
    ----------
    content : str
        Raw HTML source
    inline : bool, default = False
        Inline fragment when True, HTML block otherwise

    """

    content: str
    inline: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this HTML node."""
        return visitor.visit_html(self)


# ============================================================================
# Inline Nodes
# ============================================================================


@dataclass
class Text(Node):
    """Plain text node.

    Parameters
    ----------
    content : str
        Text content
    metadata : dict, default = empty dict
        Text metadata
    source_location : SourceLocation or None, default = None
        Source location information

    """

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this text."""
        return visitor.visit_text(self)


@dataclass
class Emphasis(Node):
    """Emphasis node (typically rendered as italic)."""

    content: list[Node] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this emphasis."""
        return visitor.visit_emphasis(self)


@dataclass
class Strong(Node):
    """Strong emphasis node (typically rendered as bold)."""

    content: list[Node] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this strong emphasis."""
        return visitor.visit_strong(self)


@dataclass
class Strikethrough(Node):
    """Strikethrough node (``~~text~~``)."""

    content: list[Node] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this strikethrough."""
        return visitor.visit_strikethrough(self)


@dataclass
class Code(Node):
    """Inline code node.

    Parameters
    ----------
    content : str
        Code content; opaque to every extension

    """

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this inline code."""
        return visitor.visit_code(self)


@dataclass
class Link(Node):
    """Hyperlink node.

    Parameters
    ----------
    url : str
        Link target as written; validated by the sanitizer
    content : list of Node, default = empty list
        Inline nodes representing link text
    title : str or None, default = None
        Link title
    metadata : dict, default = empty dict
        Link metadata (``autolink`` marks ``<scheme:...>`` links)
    source_location : SourceLocation or None, default = None
        Source location information

    """

    url: str
    content: list[Node] = field(default_factory=list)
    title: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this link."""
        return visitor.visit_link(self)


@dataclass
class Image(Node):
    """Image node.

    Parameters
    ----------
    url : str
        Image source URL
    alt_text : str, default = ''
        Alternative text
    title : str or None, default = None
        Image title
    metadata : dict, default = empty dict
        Image metadata (``emoticon`` marks smiley images)
    source_location : SourceLocation or None, default = None
        Source location information

    """

    url: str = ""
    alt_text: str = ""
    title: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this image."""
        return visitor.visit_image(self)


@dataclass
class LineBreak(Node):
    """Hard line break node."""

    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this line break."""
        return visitor.visit_line_break(self)


@dataclass
class FootnoteReference(Node):
    """Footnote reference node (inline), written as ``[^id]``.

    Parameters
    ----------
    identifier : str
        Footnote identifier as written in the source
    index : int or None, default = None
        Display number shared by every reference to the same footnote
    occurrence : int, default = 1
        1-based position of this reference among references to the same
        footnote, used to build unique anchors
    metadata : dict, default = empty dict
        Footnote reference metadata
    source_location : SourceLocation or None, default = None
        Source location information

    """

    identifier: str
    index: Optional[int] = None
    occurrence: int = 1
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this footnote reference."""
        return visitor.visit_footnote_reference(self)


@dataclass
class Mention(Node):
    """User mention, written as ``@name`` or ``@**long name**``.

    Parameters
    ----------
    name : str
        Mentioned name
    raw : str
        Source text, restored when the mention cannot be resolved

    """

    name: str
    raw: str
    metadata: dict[str, Any] = field(default_factory=dict)
    source_location: Optional[SourceLocation] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this mention."""
        return visitor.visit_mention(self)


# ============================================================================
# Traversal helpers
# ============================================================================

_CHILDREN_NODES = (BlockQuote, ListItem)
_CONTENT_NODES = (Heading, Paragraph, Emphasis, Strong, Strikethrough, Link, TableCell, FootnoteDefinition)


def get_node_children(node: Node) -> list[Node]:
    """Get all child nodes from a node.

    Returns the ordered children of any node kind, so that traversals do not
    need to know each node's field names.

    Parameters
    ----------
    node : Node
        The node to get children from

    Returns
    -------
    list of Node
        List of child nodes (empty list if node has no children)

    Examples
    --------
    >>> heading = Heading(level=1, content=[Text("Hello"), Strong(content=[Text("world")])])
    >>> len(get_node_children(heading))
    2

    """
    if isinstance(node, Document):
        return [*node.children, *node.footnotes]

    if isinstance(node, _CHILDREN_NODES):
        return list(node.children)

    if isinstance(node, _CONTENT_NODES):
        return list(node.content)

    if isinstance(node, List):
        return list(node.items)

    if isinstance(node, Table):
        children: list[Node] = []
        if node.header:
            children.append(node.header)
        children.extend(node.rows)
        return children

    if isinstance(node, TableRow):
        return list(node.cells)

    if isinstance(node, Figure):
        return [node.image, *(node.caption or [])]

    # Leaf nodes (no children)
    return []


def replace_node_children(node: Node, new_children: list[Node]) -> Node:
    """Create a copy of a node with replaced children.

    Parameters
    ----------
    node : Node
        The node to copy and modify
    new_children : list of Node
        New children to use in the copy, in the order returned by
        :func:`get_node_children`

    Returns
    -------
    Node
        New node with replaced children

    Raises
    ------
    ValueError
        If the node type doesn't support children or the children have the
        wrong type

    Notes
    -----
    For a Document, trailing children beyond ``len(node.children)`` replace
    ``node.footnotes``. For a Figure, the first child must be the Image and
    the rest become the caption.

    """
    if isinstance(node, Document):
        split = len(node.children) if node.footnotes else len(new_children)
        footnotes = new_children[split:]
        if not all(isinstance(f, FootnoteDefinition) for f in footnotes):
            raise ValueError("Document footnotes must be FootnoteDefinition instances")
        return replace(node, children=new_children[:split], footnotes=footnotes)  # type: ignore[arg-type]

    if isinstance(node, _CHILDREN_NODES):
        return replace(node, children=new_children)

    if isinstance(node, _CONTENT_NODES):
        return replace(node, content=new_children)

    if isinstance(node, List):
        return replace(node, items=new_children)  # type: ignore[arg-type]

    if isinstance(node, Table):
        header_row: TableRow | None = None
        body_rows: list[TableRow] = []
        for child in new_children:
            if not isinstance(child, TableRow):
                raise ValueError(f"Table children must be TableRow instances, got {type(child).__name__}")
            if child.is_header and header_row is None:
                header_row = child
            else:
                body_rows.append(child)
        return replace(node, header=header_row, rows=body_rows)

    if isinstance(node, TableRow):
        return replace(node, cells=new_children)  # type: ignore[arg-type]

    if isinstance(node, Figure):
        if not new_children or not isinstance(new_children[0], Image):
            raise ValueError("Figure children must start with an Image")
        caption = new_children[1:] if node.caption is not None else None
        return replace(node, image=new_children[0], caption=caption)

    raise ValueError(f"Node type {type(node).__name__} does not support children")
