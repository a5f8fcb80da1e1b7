#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/processors/quotes.py
"""Apply the configured quote filter to text leaves."""

from __future__ import annotations

from safemd.ast.nodes import Code, CodeBlock, Node, Text
from safemd.ast.transforms import NodeTransformer
from safemd.options import QuoteFilterFunc


class QuoteFilter(NodeTransformer):
    """Run ``quote_filter(text, locale)`` over every Text node.

    Code spans and code blocks are leaves of their own kind and never reach
    the filter.
    """

    def __init__(self, quote_filter: QuoteFilterFunc, locale: str):
        self.quote_filter = quote_filter
        self.locale = locale

    def visit_text(self, node: Text) -> Text:  # type: ignore[override]
        return Text(
            content=self.quote_filter(node.content, self.locale),
            metadata=node.metadata.copy(),
            source_location=node.source_location,
        )

    def visit_code(self, node: Code) -> Node:  # type: ignore[override]
        return node

    def visit_code_block(self, node: CodeBlock) -> Node:  # type: ignore[override]
        return node
