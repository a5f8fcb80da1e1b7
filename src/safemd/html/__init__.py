#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/html/__init__.py
"""HTML output: AST transformation, sanitization and serialization."""

from safemd.html.highlight import normalize_language, pygments_highlight
from safemd.html.sanitizer import Sanitizer, sanitize_tree
from safemd.html.serialize import serialize
from safemd.html.transformer import HtmlTransformer, ast_to_html_tree

__all__ = [
    "HtmlTransformer",
    "Sanitizer",
    "ast_to_html_tree",
    "normalize_language",
    "pygments_highlight",
    "sanitize_tree",
    "serialize",
]
