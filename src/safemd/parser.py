#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/parser.py
"""Markdown to AST converter.

This module turns markdown text into the AST consumed by the rest of the
pipeline. Tokenizing is delegated to mistune, driven by the tokenizer
registry; this module maps the resulting token stream onto node classes.

"""

from __future__ import annotations

import html
import logging
from typing import Any, Optional
from urllib.parse import unquote

from safemd.ast import (
    BlockQuote,
    Code,
    CodeBlock,
    Document,
    Embed,
    Emphasis,
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
from safemd.ast.utils import merge_adjacent_text
from safemd.exceptions import ParseError
from safemd.options import RenderOptions
from safemd.tokenizers import TokenizerRegistry, default_registry
from safemd.utils.security import sanitize_language_identifier, sanitize_null_bytes

logger = logging.getLogger(__name__)


class MarkdownToAstConverter:
    """Convert markdown text to an AST Document.

    Parameters
    ----------
    options : RenderOptions or None, default = None
        Render options; the tokenizer toggles and depth limit shape the grammar
    registry : TokenizerRegistry or None, default = None
        Tokenizer registry; the frozen default registry when omitted

    """

    def __init__(self, options: Optional[RenderOptions] = None, registry: Optional[TokenizerRegistry] = None):
        self.options = options or RenderOptions()
        self.registry = registry or default_registry()

        self._block_handlers: dict[str, Any] = {
            "heading": self._process_heading,
            "paragraph": self._process_paragraph,
            "block_text": self._process_paragraph,
            "block_code": self._process_code_block,
            "block_quote": self._process_block_quote,
            "list": self._process_list,
            "table": self._process_table,
            "thematic_break": lambda token: ThematicBreak(),
            "block_html": lambda token: Html(content=token.get("raw", ""), inline=False),
            "block_math": lambda token: Math(content=token.get("raw", ""), inline=False),
            "footnote_def": self._process_footnote_def,
            "embed": self._process_embed,
        }
        self._inline_handlers: dict[str, Any] = {
            "text": self._handle_text_token,
            "strong": lambda token: Strong(content=self._process_inline_tokens(token.get("children", []))),
            "emphasis": lambda token: Emphasis(content=self._process_inline_tokens(token.get("children", []))),
            "strikethrough": lambda token: Strikethrough(
                content=self._process_inline_tokens(token.get("children", []))
            ),
            "codespan": lambda token: Code(content=token.get("raw", "")),
            "link": self._handle_link_token,
            "image": self._handle_image_token,
            "linebreak": lambda token: LineBreak(),
            "softbreak": lambda token: Text(content="\n"),
            "inline_html": lambda token: Html(content=token.get("raw", ""), inline=True),
            "inline_math": lambda token: Math(content=token.get("raw", ""), inline=True),
            "footnote_ref": self._handle_footnote_ref_token,
            "mention": self._handle_mention_token,
            "emoticon": self._handle_emoticon_token,
        }

    def parse(self, markdown_text: str) -> Document:
        """Parse markdown text into an AST Document.

        Parameters
        ----------
        markdown_text : str
            Untrusted markdown source

        Returns
        -------
        Document
            AST document node

        Raises
        ------
        ParseError
            If the base grammar fails on the input

        """
        if not isinstance(markdown_text, str):
            raise ParseError(f"Markdown input must be str, got {type(markdown_text).__name__}")

        content = sanitize_null_bytes(markdown_text)
        markdown = self.registry.build_markdown(self.options)

        try:
            tokens, _state = markdown.parse(content)
        except RecursionError as e:
            raise ParseError("Markdown nesting exceeds what the parser can process", original_error=e) from e
        except Exception as e:
            raise ParseError(f"Failed to parse markdown: {e}", original_error=e) from e

        if not isinstance(tokens, list):
            raise ParseError("Parser returned rendered output instead of tokens")

        children = self._process_tokens(tokens)
        logger.debug("Parsed %d top-level blocks", len(children))
        return Document(children=children)

    # ------------------------------------------------------------------
    # Block tokens
    # ------------------------------------------------------------------

    def _process_tokens(self, tokens: list[dict[str, Any]]) -> list[Node]:
        """Process a list of mistune block tokens into AST nodes."""
        nodes: list[Node] = []
        for token in tokens:
            node = self._process_token(token)
            if node is not None:
                nodes.append(node)
        return nodes

    def _process_token(self, token: dict[str, Any]) -> Node | None:
        token_type = token.get("type", "")
        if token_type == "blank_line":
            return None

        handler = self._block_handlers.get(token_type)
        if handler is not None:
            return handler(token)

        logger.warning("Unknown block token type %r kept as text", token_type)
        return self._fallback_paragraph(token)

    def _fallback_paragraph(self, token: dict[str, Any]) -> Node | None:
        if "children" in token:
            return Paragraph(content=self._process_inline_tokens(token["children"]))
        raw = token.get("raw") or token.get("text")
        return Paragraph(content=[Text(content=raw)]) if raw else None

    def _process_heading(self, token: dict[str, Any]) -> Heading:
        attrs = token.get("attrs", {})
        level = attrs.get("level", 1) if isinstance(attrs, dict) else 1
        if not isinstance(level, int) or level < 1 or level > 6:
            level = 1
        return Heading(level=level, content=self._process_inline_tokens(token.get("children", [])))

    def _process_paragraph(self, token: dict[str, Any]) -> Paragraph:
        return Paragraph(content=self._process_inline_tokens(token.get("children", [])))

    def _process_code_block(self, token: dict[str, Any]) -> CodeBlock:
        """Process code block token.

        Parameters
        ----------
        token : dict
            Code block token with 'raw' and optional 'attrs'

        Returns
        -------
        CodeBlock
            Code block AST node

        """
        code_content = token.get("raw", "")
        attrs = token.get("attrs", {})
        info_string = attrs.get("info", None) if isinstance(attrs, dict) else None

        metadata: dict[str, Any] = {}
        language = None

        if info_string:
            info_string = info_string.strip()
            metadata["info_string"] = info_string

            parts = info_string.split(maxsplit=1)
            if parts:
                # The identifier ends up in a class attribute and selects a lexer
                language = sanitize_language_identifier(parts[0])
                if len(parts) > 1:
                    metadata["info_attrs"] = parts[1]

        return CodeBlock(content=code_content, language=language or None, metadata=metadata)

    def _process_block_quote(self, token: dict[str, Any]) -> BlockQuote:
        return BlockQuote(children=self._process_tokens(token.get("children", [])))

    def _process_list(self, token: dict[str, Any]) -> List:
        """Process list token.

        Parameters
        ----------
        token : dict
            List token with 'children', 'tight' and 'attrs' (ordered, start)

        Returns
        -------
        List
            List AST node

        """
        attrs = token.get("attrs", {})
        if not isinstance(attrs, dict):
            attrs = {}

        items = [
            ListItem(children=self._process_tokens(child.get("children", [])))
            for child in token.get("children", [])
            if isinstance(child, dict)
        ]
        return List(
            ordered=bool(attrs.get("ordered", False)),
            items=items,
            start=attrs.get("start", 1),
            tight=bool(token.get("tight", True)),
        )

    def _process_table(self, token: dict[str, Any]) -> Table:
        """Process table token.

        Parameters
        ----------
        token : dict
            Table token with 'table_head' and 'table_body' children

        Returns
        -------
        Table
            Table AST node

        """
        header = None
        rows = []
        alignments = []

        for section in token.get("children", []):
            section_type = section.get("type", "")
            if section_type == "table_head":
                cells = self._process_table_cells(section.get("children", []))
                header = TableRow(cells=cells, is_header=True)
                alignments = [cell.alignment for cell in cells]
            elif section_type == "table_body":
                for row_token in section.get("children", []):
                    rows.append(TableRow(cells=self._process_table_cells(row_token.get("children", []))))

        return Table(header=header, rows=rows, alignments=alignments)

    def _process_table_cells(self, cell_tokens: list[dict[str, Any]]) -> list[TableCell]:
        cells = []
        for cell_token in cell_tokens:
            attrs = cell_token.get("attrs", {})
            cells.append(
                TableCell(
                    content=self._process_inline_tokens(cell_token.get("children", [])),
                    alignment=attrs.get("align") if isinstance(attrs, dict) else None,
                )
            )
        return cells

    def _process_footnote_def(self, token: dict[str, Any]) -> FootnoteDefinition:
        attrs = token.get("attrs", {})
        return FootnoteDefinition(
            identifier=attrs.get("key", ""),
            content=self._process_tokens(token.get("children", [])),
        )

    def _process_embed(self, token: dict[str, Any]) -> Embed:
        attrs = token.get("attrs", {})
        return Embed(url=attrs.get("url", ""), metadata={"raw": token.get("raw", "")})

    # ------------------------------------------------------------------
    # Inline tokens
    # ------------------------------------------------------------------

    def _process_inline_tokens(self, tokens: list[dict[str, Any]]) -> list[Node]:
        """Process inline tokens, merging the text fragments mistune emits."""
        nodes: list[Node] = []
        for token in tokens:
            token_type = token.get("type", "")
            handler = self._inline_handlers.get(token_type)
            if handler is not None:
                nodes.append(handler(token))
                continue

            logger.warning("Unknown inline token type %r kept as text", token_type)
            if "children" in token:
                nodes.extend(self._process_inline_tokens(token["children"]))
            elif token.get("raw"):
                nodes.append(Text(content=token["raw"]))
        return merge_adjacent_text(nodes)

    def _handle_text_token(self, token: dict[str, Any]) -> Text:
        # Backslash escapes arrive as separate tokens, so "\&amp;" decodes to "&" + "amp;"
        return Text(content=html.unescape(token.get("raw", "")))

    def _handle_link_token(self, token: dict[str, Any]) -> Link:
        """Handle link token."""
        attrs = token.get("attrs", {})
        if not isinstance(attrs, dict):
            attrs = {}
        url = attrs.get("url", "")
        content = self._process_inline_tokens(token.get("children", []))

        metadata: dict[str, Any] = {}
        # Autolinks carry their own URL as the only text child
        if len(content) == 1 and isinstance(content[0], Text):
            decoded = unquote(url)
            if decoded in (content[0].content, "mailto:" + content[0].content):
                metadata["autolink"] = True

        return Link(url=url, content=content, title=attrs.get("title"), metadata=metadata)

    def _handle_image_token(self, token: dict[str, Any]) -> Image:
        """Handle image token; alt text is the flattened text of its children."""
        attrs = token.get("attrs", {})
        if not isinstance(attrs, dict):
            attrs = {}
        return Image(
            url=attrs.get("url", ""),
            alt_text=self._flatten_text(token.get("children", [])),
            title=attrs.get("title"),
        )

    def _flatten_text(self, tokens: list[dict[str, Any]]) -> str:
        parts = []
        for child in tokens:
            if not isinstance(child, dict):
                continue
            if "children" in child:
                parts.append(self._flatten_text(child["children"]))
            elif child.get("type") in ("softbreak", "linebreak"):
                parts.append(" ")
            else:
                parts.append(child.get("raw", ""))
        return "".join(parts)

    def _handle_footnote_ref_token(self, token: dict[str, Any]) -> FootnoteReference:
        attrs = token.get("attrs", {})
        return FootnoteReference(identifier=attrs.get("key", ""), metadata={"raw": token.get("raw", "")})

    def _handle_mention_token(self, token: dict[str, Any]) -> Mention:
        attrs = token.get("attrs", {})
        return Mention(name=attrs.get("name", ""), raw=token.get("raw", ""))

    def _handle_emoticon_token(self, token: dict[str, Any]) -> Image:
        attrs = token.get("attrs", {})
        code = token.get("raw", "")
        return Image(url=attrs.get("url", ""), alt_text=code, metadata={"emoticon": True})


def markdown_to_ast(
    markdown_text: str,
    options: Optional[RenderOptions] = None,
    registry: Optional[TokenizerRegistry] = None,
) -> Document:
    """Parse markdown text into an AST Document.

    Parameters
    ----------
    markdown_text : str
        Markdown source
    options : RenderOptions, optional
        Render options shaping the grammar
    registry : TokenizerRegistry, optional
        Tokenizer registry; the default registry when omitted

    Returns
    -------
    Document
        AST document node

    """
    return MarkdownToAstConverter(options, registry).parse(markdown_text)
