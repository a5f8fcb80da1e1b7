"""safemd - render untrusted markdown to sanitized HTML.

safemd turns user-authored markdown into HTML that is safe to embed in a
page. Parsing is driven by an ordered registry of tokenizers, so the base
grammar and the bundled extensions (footnotes, math, embeds, mentions,
emoticons) compose predictably and can each be switched off. The tree is
bounded in depth before any other pass runs, and the HTML is sanitized
against an allow-list before it is serialized.

Key Features
------------
- Deterministic footnote numbering by first reference
- Figures from standalone images, with optional ``Figure:`` captions
- Sandboxed iframes for an allow-list of media providers
- Mentions confirmed through a caller-supplied lookup (sync or async)
- Non-fatal problems returned as diagnostics next to the HTML

Examples
--------
Basic usage:

    >>> from safemd import render
    >>> result = render("Hello [world](javascript:alert(1))")
    >>> result.contents
    '<p>Hello <a>world</a></p>'
    >>> [m.kind for m in result.messages]
    ['sanitized-content']

With options:

    >>> result = render(text, {"limitDepth": 20, "disableTokenizers.internal": ["math"]})

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

from safemd.api import render, render_async
from safemd.diagnostics import Diagnostic, RenderResult
from safemd.exceptions import ComplexityExceeded, ParseError, SafeMdError, UnsupportedNode, ValidationError
from safemd.options import RenderOptions, SanitizerPolicy
from safemd.tokenizers import Tokenizer, TokenizerRegistry, default_registry

__version__ = "0.1.0"

__all__ = [
    "ComplexityExceeded",
    "Diagnostic",
    "ParseError",
    "RenderOptions",
    "RenderResult",
    "SafeMdError",
    "SanitizerPolicy",
    "Tokenizer",
    "TokenizerRegistry",
    "UnsupportedNode",
    "ValidationError",
    "__version__",
    "default_registry",
    "render",
    "render_async",
]
