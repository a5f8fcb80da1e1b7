#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/html/sanitizer.py
"""HTML sanitization.

The sanitizer walks a BeautifulSoup tree top-down and enforces the
allow-lists of a :class:`SanitizerPolicy`:

- disallowed tags are unwrapped, their children taking their place;
- tags whose content is never meant to be read (``script``, ``style``, ...)
  are removed together with their content;
- comments, doctypes, CDATA sections and processing instructions are removed;
- attributes outside the allow-list are dropped, as are ``href``/``src``
  values with a scheme outside the policy or embedded control characters;
- an ``iframe`` survives only when its ``src`` belongs to a trusted embed
  provider, and then always carries a ``sandbox``; any other iframe becomes
  a plain link to its source.

Every change is reported as a ``sanitized-content`` diagnostic. Running the
sanitizer on its own output changes nothing.

The walk uses an explicit stack, so raw HTML nested arbitrarily deep is
handled without recursion.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Union

from bs4 import BeautifulSoup, NavigableString
from bs4.element import CData, Comment, Declaration, Doctype, ProcessingInstruction, Tag

from safemd.constants import ALLOWED_STYLE_PATTERN, IFRAME_SANDBOX, URL_ATTRIBUTES
from safemd.diagnostics import DiagnosticCollector
from safemd.embeds import is_trusted_iframe_src
from safemd.html.transformer import parse_fragment
from safemd.options import SanitizerPolicy
from safemd.utils.security import is_safe_url

logger = logging.getLogger(__name__)

_STYLE_RE = re.compile(ALLOWED_STYLE_PATTERN)
_NON_CONTENT_STRINGS = (Comment, Declaration, Doctype, CData, ProcessingInstruction)


class Sanitizer:
    """Enforce a SanitizerPolicy on an HTML tree.

    Parameters
    ----------
    policy : SanitizerPolicy or None, default = None
        Allow-lists; the default policy when omitted
    diagnostics : DiagnosticCollector or None, default = None
        Receives a ``sanitized-content`` diagnostic per change

    """

    def __init__(self, policy: Optional[SanitizerPolicy] = None, diagnostics: Optional[DiagnosticCollector] = None):
        self.policy = policy or SanitizerPolicy()
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()

    def sanitize(self, root: Union[BeautifulSoup, Tag]) -> Union[BeautifulSoup, Tag]:
        """Sanitize ``root`` in place and return it.

        Parameters
        ----------
        root : BeautifulSoup or Tag
            Tree to clean; the root itself is never removed

        Returns
        -------
        BeautifulSoup or Tag
            The same object, cleaned

        """
        to_unwrap: list[Tag] = []
        stack: list[Tag] = [root]
        while stack:
            parent = stack.pop()
            for child in list(parent.contents):
                if isinstance(child, _NON_CONTENT_STRINGS):
                    self.diagnostics.sanitized(
                        f"Removed {type(child).__name__.lower()}", node_type=type(child).__name__.lower()
                    )
                    child.extract()
                elif isinstance(child, Tag):
                    kept = self._clean_tag(child, to_unwrap)
                    if kept is not None:
                        stack.append(kept)

        # Inner tags were pushed after outer ones; unwrapping in reverse keeps positions valid
        for tag in reversed(to_unwrap):
            tag.unwrap()

        return root

    def sanitize_html(self, markup: str) -> str:
        """Parse, sanitize and serialize an HTML fragment."""
        soup = BeautifulSoup("", "html.parser")
        soup.extend(parse_fragment(markup))
        return str(self.sanitize(soup))

    def _clean_tag(self, tag: Tag, to_unwrap: list[Tag]) -> Optional[Tag]:
        """Apply the policy to one tag; return the tag whose children still need a visit."""
        name = (tag.name or "").lower()

        if name in self.policy.drop_content_tags:
            self.diagnostics.sanitized(f"Removed <{name}> with its content", node_type=name)
            tag.decompose()
            return None

        if name == "iframe":
            return self._clean_iframe(tag)

        if name not in self.policy.allowed_tags:
            self.diagnostics.sanitized(f"Unwrapped disallowed tag <{name}>", node_type=name)
            tag.attrs = {}
            to_unwrap.append(tag)
            return tag

        self._clean_attributes(tag, name)
        return tag

    def _clean_attributes(self, tag: Tag, name: str) -> None:
        allowed = self.policy.attributes_for(name)
        for attribute in list(tag.attrs):
            value = tag.attrs[attribute]
            key = attribute.lower()
            if key not in allowed:
                self._drop_attribute(tag, attribute, f"attribute not allowed on <{name}>")
            elif key in URL_ATTRIBUTES and not is_safe_url(_as_text(value), self.policy.url_schemes):
                self._drop_attribute(tag, attribute, "unsafe URL")
            elif key == "style" and not _STYLE_RE.match(_as_text(value).strip()):
                self._drop_attribute(tag, attribute, "style not allowed")

    def _drop_attribute(self, tag: Tag, attribute: str, reason: str) -> None:
        value = _as_text(tag.attrs.pop(attribute))
        self.diagnostics.sanitized(
            f"Removed {attribute} from <{tag.name}> ({reason})", node_type=tag.name, detail=value[:200]
        )

    def _clean_iframe(self, tag: Tag) -> Optional[Tag]:
        src = _as_text(tag.get("src", "")).strip()
        if src and is_safe_url(src, self.policy.url_schemes) and is_trusted_iframe_src(src, self.policy.embed_providers):
            self._clean_attributes(tag, "iframe")
            # bs4 parses sandbox as a multi-valued attribute
            if _as_text(tag.get("sandbox")) != IFRAME_SANDBOX:
                self.diagnostics.sanitized("Forced sandbox on embedded iframe", node_type="iframe", detail=src)
                tag["sandbox"] = IFRAME_SANDBOX
            if tag.contents:
                self.diagnostics.sanitized("Removed iframe fallback content", node_type="iframe", detail=src)
                tag.clear()
            return None

        self.diagnostics.sanitized("Replaced untrusted iframe with a link", node_type="iframe", detail=src[:200])
        if src and is_safe_url(src, self.policy.url_schemes):
            link = BeautifulSoup("", "html.parser").new_tag("a", attrs={"href": src})
            link.append(NavigableString(src))
            tag.replace_with(link)
        else:
            tag.decompose()
        return None


def _as_text(value: object) -> str:
    """Flatten a bs4 attribute value (multi-valued attributes are lists)."""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return "" if value is None else str(value)


def sanitize_tree(
    root: Union[BeautifulSoup, Tag],
    policy: Optional[SanitizerPolicy] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> Union[BeautifulSoup, Tag]:
    """Sanitize ``root`` in place with ``policy``."""
    return Sanitizer(policy, diagnostics).sanitize(root)
