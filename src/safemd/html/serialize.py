#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/html/serialize.py
"""HTML serialization."""

from __future__ import annotations

from typing import Union

from bs4 import BeautifulSoup
from bs4.element import Tag


def serialize(root: Union[BeautifulSoup, Tag]) -> str:
    """Serialize a sanitized tree to an HTML string.

    Text is escaped and attribute values are quoted by bs4's ``minimal``
    formatter; void elements are written in ``<br/>`` form.
    """
    if isinstance(root, BeautifulSoup):
        return root.decode(formatter="minimal")
    return "".join(str(child) for child in root.contents)
