#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/api.py
"""The public rendering API.

A render call runs these passes in order, each on a fresh tree:

1. parse (mistune grammar built from the tokenizer registry)
2. depth guard
3. footnote reordering
4. mention and embed resolution (concurrent collaborator calls)
5. math validation
6. figure promotion
7. quote filter
8. AST to HTML
9. sanitization
10. serialization

Fatal conditions raise before any HTML is produced; everything else is
reported in ``RenderResult.messages``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Union

from safemd.ast.guard import check_depth
from safemd.diagnostics import DiagnosticCollector, RenderResult
from safemd.html.sanitizer import Sanitizer
from safemd.html.serialize import serialize
from safemd.html.transformer import HtmlTransformer
from safemd.options import RenderOptions, coerce_options
from safemd.parser import MarkdownToAstConverter
from safemd.processors import (
    EmbedResolver,
    FigurePromoter,
    FootnoteReorderer,
    MathResolver,
    MentionResolver,
    QuoteFilter,
)
from safemd.tokenizers import TokenizerRegistry
from safemd.utils.decorators import debug_timer

logger = logging.getLogger(__name__)

OptionsInput = Union[RenderOptions, Mapping[str, Any], None]


async def render_async(
    markdown_text: str,
    options: OptionsInput = None,
    registry: Optional[TokenizerRegistry] = None,
) -> RenderResult:
    """Render untrusted markdown to sanitized HTML.

    Parameters
    ----------
    markdown_text : str
        Markdown source written by an untrusted author
    options : RenderOptions, mapping, or None
        Render options, or a mapping using the keys accepted by
        :meth:`RenderOptions.from_mapping` (``limitDepth``,
        ``disableTokenizers.internal``, ``mentionResolver``, ``locale``, ...)
    registry : TokenizerRegistry, optional
        Tokenizer registry; the frozen default registry when omitted

    Returns
    -------
    RenderResult
        Serialized HTML and the non-fatal diagnostics

    Raises
    ------
    ValidationError
        If ``options`` is invalid
    ParseError
        If the base grammar fails on the input
    ComplexityExceeded
        If the document nests deeper than ``limit_depth``
    UnsupportedNode
        If a post-processor or custom tokenizer produced a node kind with no
        HTML rule

    """
    render_options = coerce_options(options)
    diagnostics = DiagnosticCollector()

    with debug_timer(logger, "Parsing"):
        document = MarkdownToAstConverter(render_options, registry).parse(markdown_text)

    check_depth(document, render_options.limit_depth)

    with debug_timer(logger, "Post-processing"):
        document = FootnoteReorderer(diagnostics).process(document)
        document = await MentionResolver(render_options, diagnostics).process(document)
        document = await EmbedResolver(render_options, diagnostics).process(document)
        document = MathResolver(diagnostics).process(document)
        document = FigurePromoter().process(document)  # type: ignore[assignment]
        if render_options.quote_filter is not None:
            document = QuoteFilter(render_options.quote_filter, render_options.locale).transform(document)  # type: ignore[assignment]

    with debug_timer(logger, "HTML transformation"):
        tree = HtmlTransformer(render_options).transform(document)

    with debug_timer(logger, "Sanitizing"):
        Sanitizer(render_options.sanitizer, diagnostics).sanitize(tree)

    contents = serialize(tree)
    logger.debug("Rendered %d characters with %d diagnostics", len(contents), len(diagnostics))
    return RenderResult(contents=contents, messages=tuple(diagnostics.messages))


def render(
    markdown_text: str,
    options: OptionsInput = None,
    registry: Optional[TokenizerRegistry] = None,
) -> RenderResult:
    """Render untrusted markdown to sanitized HTML.

    Synchronous wrapper around :func:`render_async`. It starts its own event
    loop, so from inside a running loop await :func:`render_async` instead.

    Parameters
    ----------
    markdown_text : str
        Markdown source written by an untrusted author
    options : RenderOptions, mapping, or None
        Render options
    registry : TokenizerRegistry, optional
        Tokenizer registry; the frozen default registry when omitted

    Returns
    -------
    RenderResult
        Serialized HTML and the non-fatal diagnostics

    Examples
    --------
    >>> result = render("Hello *world*")
    >>> result.contents
    '<p>Hello <em>world</em></p>'

    """
    return asyncio.run(render_async(markdown_text, options, registry))
