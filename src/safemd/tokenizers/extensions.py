#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/tokenizers/extensions.py
"""Extension tokenizers layered on top of the base grammar.

Extensions
----------
- footnotes: ``[^id]: text`` definitions and ``[^id]`` references
- math: ``$$ ... $$`` blocks and ``$...$`` inline math
- embed: ``!(https://...)`` media embeds on a line of their own
- mention: ``@name`` and ``@**long name**``, active only when a mention
  resolver is configured
- emoticons: whitespace-delimited smiley codes rendered as images

Every parse function appends a token and returns the end position of the
span it claimed, or None to let the span fall through as plain text.
"""

from __future__ import annotations

import re
from typing import Any, Match, Optional

import mistune

from safemd.options import RenderOptions
from safemd.tokenizers.registry import Tokenizer

# Inner whitespace is allowed; it is collapsed when identifiers are normalized
_FOOTNOTE_LABEL = r"[^\[\]\s\\](?:[^\[\]\\\n]{0,198}[^\[\]\s\\])?"
_CONTINUATION_INDENT = re.compile(r"^(?: {1,4}|\t)", flags=re.M)

FOOTNOTE_DEFINITION_PATTERN = (
    r"^ {0,3}\[\^(?P<fndef_key>" + _FOOTNOTE_LABEL + r")\]:[ \t]*"
    r"(?P<fndef_text>[^\n]*(?:\n|$)(?:(?:[ \t]*\n)*(?: {4}|\t)[^\n]*(?:\n|$))*)"
)
FOOTNOTE_REFERENCE_PATTERN = r"\[\^(?P<fnref_key>" + _FOOTNOTE_LABEL + r")\]"

BLOCK_MATH_PATTERN = (
    r"^ {0,3}\$\$(?P<bmath_single>[^\n$]+?)\$\$[ \t]*(?:\n|$)|"
    r"^ {0,3}\$\$[ \t]*\n(?P<bmath_multi>[\s\S]*?)\n {0,3}\$\$[ \t]*(?:\n|$)"
)
INLINE_MATH_PATTERN = (
    r"\$(?P<imath_ticks>`+)(?P<imath_code>[\s\S]+?)(?P=imath_ticks)\$|"
    r"\$(?!\$)(?!\s)(?P<imath_text>(?:[^$\\\n`]|\\.)+?)(?<!\s)\$(?![\d$])"
)

EMBED_PATTERN = r"^ {0,3}!\((?P<embed_url>[^\s()]*(?:\([^\s()]*\)[^\s()]*)*)\)[ \t]*(?:\n|$)"

MENTION_PATTERN = (
    r"(?<![\w.@/])@(?:\*\*(?P<mention_long>[^*\n]{1,64})\*\*"
    r"|(?P<mention_short>[A-Za-z0-9_][\w-]{0,63}))"
)


def _nested_block_rules(block: Any, state: Any) -> list[str]:
    if state.depth() >= block.max_nested_level - 1:
        return [rule for rule in block.block_quote_rules if rule not in ("block_quote", "list")]
    return block.block_quote_rules


def parse_footnote_definition(block: Any, m: Match[str], state: Any) -> int:
    """Parse ``[^id]: text`` (with indented continuation lines) into a definition token."""
    key = m.group("fndef_key")
    text = m.group("fndef_text")
    first, _, rest = text.partition("\n")
    body = first + "\n" + _CONTINUATION_INDENT.sub("", rest)

    child = state.child_state(body)
    block.parse(child, _nested_block_rules(block, state))
    state.append_token({"type": "footnote_def", "children": child.tokens, "attrs": {"key": key}})
    return m.end()


def parse_footnote_reference(inline: Any, m: Match[str], state: Any) -> int:
    state.append_token({"type": "footnote_ref", "raw": m.group(0), "attrs": {"key": m.group("fnref_key")}})
    return m.end()


def parse_block_math(block: Any, m: Match[str], state: Any) -> int:
    text = m.group("bmath_single")
    if text is None:
        text = m.group("bmath_multi")
    state.append_token({"type": "block_math", "raw": text.strip("\n")})
    return m.end()


def parse_inline_math(inline: Any, m: Match[str], state: Any) -> int:
    text = m.group("imath_code")
    if text is None:
        text = m.group("imath_text")
    state.append_token({"type": "inline_math", "raw": text})
    return m.end()


def parse_embed(block: Any, m: Match[str], state: Any) -> Optional[int]:
    url = m.group("embed_url")
    if not url:
        return None
    state.append_token({"type": "embed", "raw": m.group(0).strip(), "attrs": {"url": url}})
    return m.end()


def parse_mention(inline: Any, m: Match[str], state: Any) -> int:
    name = m.group("mention_long") or m.group("mention_short")
    state.append_token({"type": "mention", "raw": m.group(0), "attrs": {"name": name.strip()}})
    return m.end()


def emoticon_pattern(codes: list[str]) -> str:
    """Build a pattern matching any of ``codes`` between whitespace boundaries."""
    if not codes:
        return r"(?!x)x"
    alternatives = "|".join(re.escape(code) for code in sorted(codes, key=len, reverse=True))
    return r"(?<!\S)(?:" + alternatives + r")(?!\S)"


def _install_emoticons(markdown: mistune.Markdown, options: RenderOptions) -> None:
    urls = dict(options.emoticons)

    def parse_emoticon(inline: Any, m: Match[str], state: Any) -> int:
        code = m.group(0)
        state.append_token({"type": "emoticon", "raw": code, "attrs": {"url": urls[code]}})
        return m.end()

    markdown.inline.register("emoticons", emoticon_pattern(list(urls)), parse_emoticon)


FOOTNOTE_DEFINITION = Tokenizer(
    name="footnoteDefinition",
    level="block",
    pattern=FOOTNOTE_DEFINITION_PATTERN,
    parse=parse_footnote_definition,
    extension="footnotes",
)
FOOTNOTE_REFERENCE = Tokenizer(
    name="footnoteReference",
    level="inline",
    pattern=FOOTNOTE_REFERENCE_PATTERN,
    parse=parse_footnote_reference,
    extension="footnotes",
)
BLOCK_MATH = Tokenizer(
    name="blockMath", level="block", pattern=BLOCK_MATH_PATTERN, parse=parse_block_math, extension="math"
)
INLINE_MATH = Tokenizer(
    name="inlineMath", level="inline", pattern=INLINE_MATH_PATTERN, parse=parse_inline_math, extension="math"
)
EMBED = Tokenizer(name="embed", level="block", pattern=EMBED_PATTERN, parse=parse_embed, extension="embed")
MENTION = Tokenizer(
    name="mention",
    level="inline",
    pattern=MENTION_PATTERN,
    parse=parse_mention,
    extension="mention",
    requires=lambda options: options.mention_resolver is not None,
)
EMOTICONS = Tokenizer(name="emoticons", level="inline", install=_install_emoticons, extension="emoticons")
