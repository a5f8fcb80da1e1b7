#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/html/highlight.py
"""Syntax highlighting for code blocks, backed by pygments."""

from __future__ import annotations

import logging
from typing import Optional

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from safemd.constants import LANGUAGE_ALIASES, PLAIN_CODE_LANGUAGES

logger = logging.getLogger(__name__)

_FORMATTER = HtmlFormatter(nowrap=True)


def normalize_language(language: Optional[str]) -> Optional[str]:
    """Map a fence language onto its canonical name.

    >>> normalize_language("LaTeX")
    'tex'
    >>> normalize_language("rust")
    'rust'

    """
    if not language:
        return None
    lowered = language.lower()
    return LANGUAGE_ALIASES.get(lowered, lowered)


def is_plain_language(language: Optional[str]) -> bool:
    """Check whether code in ``language`` is shown without highlighting."""
    return language is None or language in PLAIN_CODE_LANGUAGES


def pygments_highlight(code: str, language: Optional[str]) -> Optional[str]:
    """Highlight ``code`` with pygments.

    Parameters
    ----------
    code : str
        Source code
    language : str or None
        Canonical language name

    Returns
    -------
    str or None
        HTML made of ``<span>`` elements, or None when no lexer matches

    """
    if is_plain_language(language):
        return None
    try:
        lexer = get_lexer_by_name(language)  # type: ignore[arg-type]
    except ClassNotFound:
        logger.debug("No pygments lexer for language %r", language)
        return None
    return highlight(code, lexer, _FORMATTER)
