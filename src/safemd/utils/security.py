#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Security utilities for safemd rendering passes.

This module provides the validation functions shared by the parser, the
post-processors and the sanitizer, so that every URL and identifier that
reaches the HTML output is judged by the same rules.

Functions
---------
- sanitize_null_bytes: Remove null and zero-width characters
- sanitize_language_identifier: Sanitize code fence language identifiers
- is_relative_url: Check whether a URL has no scheme
- is_safe_url: Check a URL against the allowed scheme list
"""

import logging
import re
from typing import Iterable

from safemd.constants import (
    DANGEROUS_NULL_LIKE_CHARS,
    MAX_LANGUAGE_IDENTIFIER_LENGTH,
    MAX_URL_LENGTH,
    SAFE_LANGUAGE_IDENTIFIER_PATTERN,
    SAFE_URL_SCHEMES,
    URL_SCHEME_PATTERN,
)

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(URL_SCHEME_PATTERN)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")
_URL_PATH_DELIMITERS = ("/", "?", "#")


def sanitize_null_bytes(content: str) -> str:
    r"""Remove null bytes and zero-width characters that can bypass XSS filters.

    Removed characters:
    - \\x00 (NULL byte)
    - \\ufeff (BOM/Zero Width No-Break Space)
    - \\u200b (Zero Width Space)
    - \\u200c (Zero Width Non-Joiner)
    - \\u200d (Zero Width Joiner)
    - \\u2060 (Word Joiner)

    Parameters
    ----------
    content : str
        Content to sanitize

    Returns
    -------
    str
        Sanitized content with dangerous characters removed

    Examples
    --------
    >>> sanitize_null_bytes("Hello\\x00World")
    'HelloWorld'
    >>> sanitize_null_bytes("Normal text")
    'Normal text'

    """
    if not content:
        return content

    for char in DANGEROUS_NULL_LIKE_CHARS:
        if char in content:
            content = content.replace(char, "")

    return content


def sanitize_language_identifier(language: str) -> str:
    r"""Sanitize code fence language identifier.

    The identifier ends up inside a ``class`` attribute and selects a lexer,
    so only alphanumerics, underscores, hyphens and plus signs are accepted.

    Parameters
    ----------
    language : str
        Raw language identifier string to sanitize

    Returns
    -------
    str
        Sanitized language identifier, or empty string if invalid

    Examples
    --------
    >>> sanitize_language_identifier("python")
    'python'
    >>> sanitize_language_identifier("c++")
    'c++'
    >>> sanitize_language_identifier("python\\nmalicious")
    ''

    """
    if not language:
        return ""

    language = language.strip()

    if len(language) > MAX_LANGUAGE_IDENTIFIER_LENGTH:
        logger.warning(
            f"Language identifier exceeds maximum length ({MAX_LANGUAGE_IDENTIFIER_LENGTH}): {language[:50]}..."
        )
        return ""

    if not re.match(SAFE_LANGUAGE_IDENTIFIER_PATTERN, language):
        logger.warning(
            f"Blocked potentially dangerous language identifier containing invalid characters: {language[:50]}"
        )
        return ""

    return language


def is_relative_url(url: str) -> bool:
    """Check if a URL is a relative URL.

    A URL is relative when it carries no scheme: either it has no colon at
    all, or a path, query or fragment delimiter comes before the first colon.

    Parameters
    ----------
    url : str
        URL to check

    Returns
    -------
    bool
        True if URL is relative, False otherwise

    Examples
    --------
    >>> is_relative_url("#section")
    True
    >>> is_relative_url("./docs/a:b.html")
    True
    >>> is_relative_url("https://example.com")
    False
    >>> is_relative_url("javascript:alert(1)")
    False

    """
    if not url or not url.strip():
        return True

    url_stripped = url.strip()
    colon = url_stripped.find(":")
    if colon == -1:
        return True

    delimiters = [pos for pos in (url_stripped.find(d) for d in _URL_PATH_DELIMITERS) if pos != -1]
    return bool(delimiters) and min(delimiters) < colon


def is_safe_url(url: str | None, allowed_schemes: Iterable[str] = SAFE_URL_SCHEMES) -> bool:
    """Check whether a URL may appear in an ``href`` or ``src`` attribute.

    Parameters
    ----------
    url : str or None
        URL to validate, as it would appear in the attribute value
    allowed_schemes : iterable of str
        Lowercase scheme names that are accepted

    Returns
    -------
    bool
        True for relative URLs and URLs whose scheme is allowed. False for
        other schemes, overlong values, and values with embedded control or
        zero-width characters.

    Examples
    --------
    >>> is_safe_url("https://example.com")
    True
    >>> is_safe_url("/relative/path")
    True
    >>> is_safe_url("JavaScript:alert(1)")
    False
    >>> is_safe_url("java\\tscript:alert(1)")
    False

    """
    if url is None:
        return True

    value = url.strip()
    if not value:
        return True

    if len(value) > MAX_URL_LENGTH:
        logger.debug("Rejected URL longer than %d characters", MAX_URL_LENGTH)
        return False

    if _CONTROL_CHARS_RE.search(value) or sanitize_null_bytes(value) != value:
        return False

    match = _SCHEME_RE.match(value)
    if match:
        return match.group(1).lower() in set(allowed_schemes)

    return is_relative_url(value)
