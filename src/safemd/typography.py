#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/typography.py
"""Default quote substitution filter."""

from __future__ import annotations

import re

from safemd.constants import GUILLEMET_LOCALES


def _base_locale(locale: str) -> str:
    return locale.lower().replace("_", "-").split("-", 1)[0]


def guillemets(text: str, locale: str) -> str:
    """Replace ``<<`` and ``>>`` with locale-appropriate guillemets.

    Whitespace just inside the marks becomes the locale's narrow no-break
    space. Locales without an entry leave the text untouched.

    Parameters
    ----------
    text : str
        Plain text (never markup)
    locale : str
        Locale tag such as ``"fr"`` or ``"fr-CA"``

    Returns
    -------
    str
        Text with guillemets substituted

    Examples
    --------
    >>> guillemets("<<Bonjour>>", "fr")
    '«Bonjour»'
    >>> guillemets("<<Bonjour>>", "xx")
    '<<Bonjour>>'

    """
    chars = GUILLEMET_LOCALES.get(locale) or GUILLEMET_LOCALES.get(_base_locale(locale or ""))
    if chars is None or ("<<" not in text and ">>" not in text):
        return text

    left, right, space = chars
    result = text.replace("<<", left)
    result = re.sub("(" + re.escape(left) + r")\s", lambda m: m.group(1) + space, result)
    result = result.replace(">>", right)
    return re.sub(r"\s(" + re.escape(right) + ")", lambda m: space + m.group(1), result)
