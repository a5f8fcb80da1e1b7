#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/tokenizers/base.py
"""Base grammar expressed as internal tokenizers.

Each entry maps a public tokenizer name onto the mistune rules that
implement it, so built-in syntax can be switched off with
``disable_tokenizers`` exactly like an extension.

Tables follow GFM row handling: a body row with fewer cells than the header
is padded and one with more is truncated, instead of rejecting the table.
"""

from __future__ import annotations

import re
from typing import Any, Match, Optional

import mistune
from mistune.plugins.formatting import strikethrough
from mistune.plugins.table import NP_TABLE_PATTERN, TABLE_PATTERN

from safemd.options import RenderOptions
from safemd.tokenizers.registry import Tokenizer

_ALIGN_CELL = re.compile(r"^(?::?-+:?)?$")


def _is_escaped(text: str, pos: int) -> bool:
    backslashes = 0
    while pos > 0 and text[pos - 1] == "\\":
        backslashes += 1
        pos -= 1
    return backslashes % 2 == 1


def _split_cells(text: str) -> list[str]:
    """Split a row on unescaped pipes."""
    cells = []
    start = 0
    for pos, char in enumerate(text):
        if char == "|" and not _is_escaped(text, pos):
            cells.append(text[start:pos].strip())
            start = pos + 1
    cells.append(text[start:].strip())
    return cells


def _strip_outer_pipes(line: str, required: bool) -> Optional[str]:
    text = line.rstrip("\n").strip(" \t")
    if not text or "|" not in text:
        return None
    if required and not (text.startswith("|") and text.endswith("|") and len(text) > 1):
        return None
    if text.startswith("|"):
        text = text[1:]
    if text.endswith("|") and not text.endswith("\\|"):
        text = text[:-1]
    return text


def _alignments(delimiter: str) -> Optional[list[Optional[str]]]:
    aligns: list[Optional[str]] = []
    for cell in _split_cells(delimiter):
        if not _ALIGN_CELL.match(cell):
            return None
        left, right = cell.startswith(":"), cell.endswith(":")
        aligns.append("center" if left and right else "left" if left else "right" if right else None)
    return aligns


def _cell_tokens(cells: list[str], aligns: list[Optional[str]], head: bool) -> list[dict[str, Any]]:
    # Short rows are padded and long rows truncated to the header width
    cells = (cells + [""] * len(aligns))[: len(aligns)]
    return [
        {"type": "table_cell", "text": text, "attrs": {"align": aligns[i], "head": head}}
        for i, text in enumerate(cells)
    ]


def _parse_table(block: Any, m: Match[str], state: Any, required_pipes: bool) -> Optional[int]:
    header = _strip_outer_pipes(m.group(0), required_pipes)
    if header is None:
        return None
    pos = m.end()
    delimiter_line = state.get_line(pos)
    delimiter = _strip_outer_pipes(delimiter_line, False)
    aligns = _alignments(delimiter) if delimiter is not None else None
    headers = _split_cells(header)
    if aligns is None or len(aligns) != len(headers):
        return None
    pos += len(delimiter_line)

    rows = []
    while pos < state.cursor_max:
        line = state.get_line(pos)
        text = _strip_outer_pipes(line, required_pipes)
        if text is None:
            break
        rows.append({"type": "table_row", "children": _cell_tokens(_split_cells(text), aligns, head=False)})
        pos += len(line)

    thead = {"type": "table_head", "children": _cell_tokens(headers, aligns, head=True)}
    state.append_token({"type": "table", "children": [thead, {"type": "table_body", "children": rows}]})
    return pos


def parse_pipe_table(block: Any, m: Match[str], state: Any) -> Optional[int]:
    """Parse a table whose rows start and end with ``|``."""
    return _parse_table(block, m, state, required_pipes=True)


def parse_bare_table(block: Any, m: Match[str], state: Any) -> Optional[int]:
    """Parse a table written without outer pipes."""
    return _parse_table(block, m, state, required_pipes=False)


def _install_table(markdown: mistune.Markdown, options: RenderOptions) -> None:
    markdown.block.register("table", TABLE_PATTERN, parse_pipe_table, before="paragraph")
    markdown.block.register("nptable", NP_TABLE_PATTERN, parse_bare_table, before="paragraph")


def _install_strikethrough(markdown: mistune.Markdown, options: RenderOptions) -> None:
    strikethrough(markdown)


def _internal(name: str, level: str, *rules: str) -> Tokenizer:
    return Tokenizer(name=name, level=level, rules=rules, internal=True)  # type: ignore[arg-type]


FENCED_CODE = _internal("fencedCode", "block", "fenced_code")
INDENTED_CODE = _internal("indentedCode", "block", "indent_code")
ATX_HEADING = _internal("atxHeading", "block", "atx_heading")
SETEXT_HEADING = _internal("setextHeading", "block", "setex_heading")
THEMATIC_BREAK = _internal("thematicBreak", "block", "thematic_break")
BLOCKQUOTE = _internal("blockquote", "block", "block_quote")
LIST = _internal("list", "block", "list")
DEFINITION = _internal("definition", "block", "ref_link")
BLOCK_HTML = _internal("blockHtml", "block", "raw_html")
TABLE = Tokenizer(name="table", level="block", rules=("table", "nptable"), install=_install_table, internal=True)

ESCAPE = _internal("escape", "inline", "escape")
INLINE_CODE = _internal("inlineCode", "inline", "codespan")
EMPHASIS = _internal("emphasis", "inline", "emphasis")
STRIKETHROUGH = Tokenizer(
    name="strikethrough", level="inline", rules=("strikethrough",), install=_install_strikethrough, internal=True
)
LINK = _internal("link", "inline", "link")
AUTO_LINK = _internal("autoLink", "inline", "auto_link", "auto_email")
INLINE_HTML = _internal("inlineHtml", "inline", "inline_html")
BREAK = _internal("break", "inline", "linebreak")
