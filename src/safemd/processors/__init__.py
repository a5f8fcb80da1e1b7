#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/processors/__init__.py
"""AST post-processors.

Each processor takes a Document and returns a new one; the input tree is
never modified in place. The render pipeline runs them in this order:

1. FootnoteReorderer
2. MentionResolver (async)
3. EmbedResolver (async)
4. MathResolver
5. FigurePromoter
6. QuoteFilter
"""

from safemd.processors.figures import FigurePromoter
from safemd.processors.footnotes import FootnoteReorderer, normalize_footnote_identifier, reorder_footnotes
from safemd.processors.quotes import QuoteFilter
from safemd.processors.resolvers import EmbedResolver, MathResolver, MentionResolver

__all__ = [
    "EmbedResolver",
    "FigurePromoter",
    "FootnoteReorderer",
    "MathResolver",
    "MentionResolver",
    "QuoteFilter",
    "normalize_footnote_identifier",
    "reorder_footnotes",
]
