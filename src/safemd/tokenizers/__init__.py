#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/tokenizers/__init__.py
"""Tokenizer extension registry and the default grammar."""

from __future__ import annotations

from safemd.tokenizers import base, extensions
from safemd.tokenizers.registry import Tokenizer, TokenizerRegistry

# Priority order. Earlier entries claim a span before later ones see it.
DEFAULT_BLOCK_TOKENIZERS = (
    base.FENCED_CODE,
    extensions.BLOCK_MATH,
    base.INDENTED_CODE,
    base.ATX_HEADING,
    base.SETEXT_HEADING,
    base.THEMATIC_BREAK,
    base.BLOCKQUOTE,
    base.LIST,
    extensions.EMBED,
    extensions.FOOTNOTE_DEFINITION,
    base.DEFINITION,
    base.BLOCK_HTML,
    base.TABLE,
)

DEFAULT_INLINE_TOKENIZERS = (
    base.ESCAPE,
    extensions.INLINE_MATH,
    base.INLINE_CODE,
    extensions.FOOTNOTE_REFERENCE,
    extensions.MENTION,
    base.EMPHASIS,
    base.STRIKETHROUGH,
    base.LINK,
    base.AUTO_LINK,
    base.INLINE_HTML,
    extensions.EMOTICONS,
    base.BREAK,
)


def default_registry() -> TokenizerRegistry:
    """Return the frozen registry holding the base grammar and bundled extensions."""
    return _DEFAULT_REGISTRY


_DEFAULT_REGISTRY = TokenizerRegistry(DEFAULT_BLOCK_TOKENIZERS + DEFAULT_INLINE_TOKENIZERS).freeze()

__all__ = [
    "DEFAULT_BLOCK_TOKENIZERS",
    "DEFAULT_INLINE_TOKENIZERS",
    "Tokenizer",
    "TokenizerRegistry",
    "default_registry",
]
