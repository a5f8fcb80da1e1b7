#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/html/transformer.py
"""AST to HTML transformation.

This module provides the HtmlTransformer class, which turns an AST Document
into a BeautifulSoup tree. Every node kind has exactly one rule in an
explicit ``{node class: rule}`` table; a node kind without a rule aborts the
render with :class:`UnsupportedNode` rather than being dropped.

The tree produced here is not yet safe: raw HTML written by the author is
parsed into it as-is. :class:`safemd.html.sanitizer.Sanitizer` must run on
the result before it is serialized.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from bs4 import BeautifulSoup, NavigableString
from bs4.builder import ParserRejectedMarkup
from bs4.element import PageElement, Tag

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
)
from safemd.ast.utils import extract_text
from safemd.constants import IFRAME_SANDBOX
from safemd.exceptions import UnsupportedNode
from safemd.html.highlight import normalize_language, pygments_highlight
from safemd.options import RenderOptions
from safemd.utils.security import is_safe_url

logger = logging.getLogger(__name__)

HTML_PARSER = "html.parser"
FOOTNOTE_BACKREF = "↩"

Rendered = list[PageElement]
Rule = Callable[["HtmlTransformer", Node], Rendered]


def parse_fragment(markup: str) -> Rendered:
    """Parse an HTML fragment into detached bs4 nodes.

    Markup the parser refuses (some malformed ``<![`` sections) is kept as
    escaped text.
    """
    try:
        fragment = BeautifulSoup(markup, HTML_PARSER)
    except ParserRejectedMarkup:
        logger.debug("HTML parser rejected fragment; keeping it as text")
        return [NavigableString(markup)]
    return [element.extract() for element in list(fragment.contents)]


def to_markup(element: PageElement) -> str:
    """Serialize a bs4 node, escaping bare strings."""
    if isinstance(element, NavigableString):
        return element.output_ready()
    return str(element)


class HtmlTransformer:
    """Transform an AST Document into a BeautifulSoup tree.

    Parameters
    ----------
    options : RenderOptions or None, default = None
        Render options; controls highlighting and the sanitizer policy used
        to decide which autolinks are kept

    Examples
    --------
    >>> soup = HtmlTransformer().transform(doc)
    >>> str(soup)
    '<p>Hello <em>world</em></p>'

    """

    def __init__(self, options: Optional[RenderOptions] = None):
        self.options = options or RenderOptions()
        self._soup = BeautifulSoup("", HTML_PARSER)

    def transform(self, document: Document) -> BeautifulSoup:
        """Build the HTML tree for ``document``.

        Raises
        ------
        UnsupportedNode
            If the tree holds a node kind with no rule

        """
        self._soup = BeautifulSoup("", HTML_PARSER)
        for element in self.render(document):
            self._soup.append(element)
        return self._soup

    def render(self, node: Node) -> Rendered:
        """Render one node (and its subtree) to a list of bs4 nodes."""
        rule = self.RULES.get(type(node))
        if rule is None:
            raise UnsupportedNode(type(node).__name__)
        return rule(self, node)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _tag(self, name: str, children: Rendered = (), **attrs: object) -> Tag:  # type: ignore[assignment]
        clean = {key.rstrip("_").replace("_", "-"): value for key, value in attrs.items() if value is not None}
        tag = self._soup.new_tag(name, attrs=clean)
        for child in children:
            tag.append(child)
        return tag

    def _blocks(self, nodes: list[Node]) -> Rendered:
        rendered: Rendered = []
        for node in nodes:
            rendered.extend(self.render(node))
        return rendered

    def _inline(self, nodes: list[Node]) -> Rendered:
        """Render inline content.

        Inline HTML arrives in pieces (``<abbr title="x">``, text, ``</abbr>``),
        so when a run holds any, the whole run is serialized and parsed again
        as one fragment to let the pieces pair up.
        """
        if not any(isinstance(node, Html) for node in nodes):
            return self._blocks(nodes)

        parts = []
        for node in nodes:
            if isinstance(node, Html):
                parts.append(node.content)
            else:
                parts.extend(to_markup(element) for element in self.render(node))
        return parse_fragment("".join(parts))

    # ------------------------------------------------------------------
    # Block rules
    # ------------------------------------------------------------------

    def _document(self, node: Document) -> Rendered:
        rendered = self._blocks(node.children)
        if node.footnotes:
            rendered.append(self._footnotes(node.footnotes))
        return rendered

    def _footnotes(self, footnotes: list[FootnoteDefinition]) -> Tag:
        items = [item for definition in footnotes for item in self.render(definition)]
        return self._tag("div", [self._tag("hr"), self._tag("ol", items)], class_="footnotes")

    def _footnote_definition(self, node: FootnoteDefinition) -> Rendered:
        index = node.index if node.index is not None else node.identifier
        children = self._blocks(node.content)
        backref = self._tag(
            "a", [NavigableString(FOOTNOTE_BACKREF)], href=f"#fnref-{index}", class_="footnote-backref"
        )
        if children and isinstance(children[-1], Tag) and children[-1].name == "p":
            children[-1].append(NavigableString(" "))
            children[-1].append(backref)
        else:
            children.append(backref)
        return [self._tag("li", children, id=f"fn-{index}")]

    def _heading(self, node: Heading) -> Rendered:
        return [self._tag(f"h{node.level}", self._inline(node.content))]

    def _paragraph(self, node: Paragraph) -> Rendered:
        return [self._tag("p", self._inline(node.content))]

    def _code_block(self, node: CodeBlock) -> Rendered:
        language = normalize_language(node.language)
        highlighted = None
        if self.options.highlight and language is not None:
            highlighter = self.options.highlighter or pygments_highlight
            highlighted = highlighter(node.content, language)

        children = parse_fragment(highlighted) if highlighted else [NavigableString(node.content)]
        code = self._tag("code", children, class_=f"language-{language}" if language else None)
        return [self._tag("pre", [code])]

    def _block_quote(self, node: BlockQuote) -> Rendered:
        return [self._tag("blockquote", self._blocks(node.children))]

    def _list(self, node: List) -> Rendered:
        items = []
        for item in node.items:
            children: Rendered = []
            for child in item.children:
                # Tight lists show item paragraphs without <p>
                if node.tight and isinstance(child, Paragraph):
                    children.extend(self._inline(child.content))
                else:
                    children.extend(self.render(child))
            items.append(self._tag("li", children))

        if node.ordered:
            start = node.start if node.start not in (None, 1) else None
            return [self._tag("ol", items, start=str(start) if start is not None else None)]
        return [self._tag("ul", items)]

    def _list_item(self, node: ListItem) -> Rendered:
        return [self._tag("li", self._blocks(node.children))]

    def _table(self, node: Table) -> Rendered:
        sections = []
        if node.header is not None:
            sections.append(self._tag("thead", self.render(node.header)))
        if node.rows:
            sections.append(self._tag("tbody", self._blocks(node.rows)))
        return [self._tag("table", sections)]

    def _table_row(self, node: TableRow) -> Rendered:
        cell_tag = "th" if node.is_header else "td"
        cells = []
        for cell in node.cells:
            style = f"text-align: {cell.alignment}" if cell.alignment else None
            cells.append(self._tag(cell_tag, self._inline(cell.content), style=style))
        return [self._tag("tr", cells)]

    def _table_cell(self, node: TableCell) -> Rendered:
        style = f"text-align: {node.alignment}" if node.alignment else None
        return [self._tag("td", self._inline(node.content), style=style)]

    def _thematic_break(self, node: ThematicBreak) -> Rendered:
        return [self._tag("hr")]

    def _figure(self, node: Figure) -> Rendered:
        if node.caption is None:
            caption = [NavigableString(node.image.alt_text)]
        else:
            caption = self._inline(node.caption)
        return [self._tag("figure", self.render(node.image) + [self._tag("figcaption", caption)])]

    def _embed(self, node: Embed) -> Rendered:
        if node.src is None:
            return [self._tag("p", self._link_elements(node.url, [NavigableString(node.url)]))]
        iframe = self._tag(
            "iframe",
            src=node.src,
            width=str(node.width) if node.width else None,
            height=str(node.height) if node.height else None,
            title=node.title,
            frameborder="0",
            allowfullscreen="",
            sandbox=IFRAME_SANDBOX,
        )
        classes = ["embed"] + ([f"embed-{node.provider}"] if node.provider else [])
        return [self._tag("div", [iframe], class_=" ".join(classes))]

    def _math(self, node: Math) -> Rendered:
        classes = ["math", "math-inline" if node.inline else "math-display"]
        classes.extend(f"math-{extension}" for extension in node.metadata.get("extensions", ()))
        tag = "span" if node.inline else "div"
        return [self._tag(tag, [NavigableString(node.content)], class_=" ".join(classes), data_notation="latex")]

    def _html(self, node: Html) -> Rendered:
        return parse_fragment(node.content)

    # ------------------------------------------------------------------
    # Inline rules
    # ------------------------------------------------------------------

    def _text(self, node: Text) -> Rendered:
        return [NavigableString(node.content)]

    def _emphasis(self, node: Emphasis) -> Rendered:
        return [self._tag("em", self._inline(node.content))]

    def _strong(self, node: Strong) -> Rendered:
        return [self._tag("strong", self._inline(node.content))]

    def _strikethrough(self, node: Strikethrough) -> Rendered:
        return [self._tag("del", self._inline(node.content))]

    def _code(self, node: Code) -> Rendered:
        return [self._tag("code", [NavigableString(node.content)])]

    def _link_elements(self, url: str, content: Rendered, title: Optional[str] = None) -> Rendered:
        return [self._tag("a", content, href=url, title=title)]

    def _link(self, node: Link) -> Rendered:
        # An autolink with a rejected scheme is just the text the author typed
        if node.metadata.get("autolink") and not is_safe_url(node.url, self.options.sanitizer.url_schemes):
            return [NavigableString(extract_text(node.content))]
        return self._link_elements(node.url, self._inline(node.content), node.title)

    def _image(self, node: Image) -> Rendered:
        css_class = "smiley" if node.metadata.get("emoticon") else None
        return [self._tag("img", src=node.url, alt=node.alt_text, title=node.title, class_=css_class)]

    def _line_break(self, node: LineBreak) -> Rendered:
        return [self._tag("br")]

    def _footnote_reference(self, node: FootnoteReference) -> Rendered:
        index = node.index if node.index is not None else node.identifier
        ref_id = f"fnref-{index}" if node.occurrence <= 1 else f"fnref-{index}-{node.occurrence}"
        link = self._tag("a", [NavigableString(str(index))], href=f"#fn-{index}", class_="footnote-ref")
        return [self._tag("sup", [link], id=ref_id)]

    def _mention(self, node: Mention) -> Rendered:
        url = node.metadata.get("url")
        if url is None:
            return [NavigableString(node.raw)]
        return [self._tag("a", [NavigableString(f"@{node.name}")], href=url, class_="mention")]

    RULES: dict[type[Node], Rule] = {
        Document: _document,  # type: ignore[dict-item]
        Heading: _heading,  # type: ignore[dict-item]
        Paragraph: _paragraph,  # type: ignore[dict-item]
        CodeBlock: _code_block,  # type: ignore[dict-item]
        BlockQuote: _block_quote,  # type: ignore[dict-item]
        List: _list,  # type: ignore[dict-item]
        ListItem: _list_item,  # type: ignore[dict-item]
        Table: _table,  # type: ignore[dict-item]
        TableRow: _table_row,  # type: ignore[dict-item]
        TableCell: _table_cell,  # type: ignore[dict-item]
        ThematicBreak: _thematic_break,  # type: ignore[dict-item]
        FootnoteDefinition: _footnote_definition,  # type: ignore[dict-item]
        Figure: _figure,  # type: ignore[dict-item]
        Embed: _embed,  # type: ignore[dict-item]
        Math: _math,  # type: ignore[dict-item]
        Html: _html,  # type: ignore[dict-item]
        Text: _text,  # type: ignore[dict-item]
        Emphasis: _emphasis,  # type: ignore[dict-item]
        Strong: _strong,  # type: ignore[dict-item]
        Strikethrough: _strikethrough,  # type: ignore[dict-item]
        Code: _code,  # type: ignore[dict-item]
        Link: _link,  # type: ignore[dict-item]
        Image: _image,  # type: ignore[dict-item]
        LineBreak: _line_break,  # type: ignore[dict-item]
        FootnoteReference: _footnote_reference,  # type: ignore[dict-item]
        Mention: _mention,  # type: ignore[dict-item]
    }


def ast_to_html_tree(document: Document, options: Optional[RenderOptions] = None) -> BeautifulSoup:
    """Transform ``document`` into an (unsanitized) BeautifulSoup tree."""
    return HtmlTransformer(options).transform(document)
