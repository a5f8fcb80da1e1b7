#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/embeds.py
"""Trusted embed providers.

An embed is only ever rendered as an iframe when its source URL belongs to
one of the providers declared here. The same table drives the embed resolver
(page URL to player URL) and the sanitizer (is this iframe ``src`` trusted).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote, urlsplit


@dataclass(frozen=True)
class EmbedProvider:
    """An allow-listed source of embeddable media.

    Parameters
    ----------
    name : str
        Provider name, used as a CSS class on the rendered iframe
    url_patterns : tuple of str
        Regular expressions matched against the page URL; each must define
        an ``id`` group
    embed_template : str
        Player URL with an ``{id}`` placeholder
    iframe_hosts : frozenset of str
        Hostnames an iframe ``src`` may point at
    iframe_path_prefix : str
        Path prefix an iframe ``src`` must start with
    oembed_endpoint : str or None, default = None
        oEmbed endpoint queried for title metadata
    width, height : int
        Default iframe size

    """

    name: str
    url_patterns: tuple[str, ...]
    embed_template: str
    iframe_hosts: frozenset[str]
    iframe_path_prefix: str = "/"
    oembed_endpoint: Optional[str] = None
    width: int = 560
    height: int = 315
    _compiled: tuple[re.Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", tuple(re.compile(p) for p in self.url_patterns))

    def match(self, url: str) -> Optional[str]:
        """Return the player URL for a page URL, or None when it does not belong to this provider."""
        for pattern in self._compiled:
            found = pattern.fullmatch(url.strip())
            if found:
                return self.embed_template.format(id=quote(found.group("id"), safe="/"))
        return None

    def trusts_iframe_src(self, src: str) -> bool:
        """Check whether an iframe ``src`` points at this provider's player."""
        try:
            parts = urlsplit(src.strip())
        except ValueError:
            return False
        return (
            parts.scheme == "https"
            and (parts.hostname or "") in self.iframe_hosts
            and parts.path.startswith(self.iframe_path_prefix)
        )


@dataclass(frozen=True)
class EmbedMatch:
    """A page URL resolved against the provider table."""

    provider: EmbedProvider
    src: str


DEFAULT_EMBED_PROVIDERS: tuple[EmbedProvider, ...] = (
    EmbedProvider(
        name="youtube",
        url_patterns=(
            r"https?://(?:www\.|m\.)?youtube\.com/watch\?v=(?P<id>[\w-]{11})(?:&\S*)?",
            r"https?://youtu\.be/(?P<id>[\w-]{11})(?:\?\S*)?",
        ),
        embed_template="https://www.youtube.com/embed/{id}",
        iframe_hosts=frozenset({"www.youtube.com", "www.youtube-nocookie.com"}),
        iframe_path_prefix="/embed/",
        oembed_endpoint="https://www.youtube.com/oembed",
    ),
    EmbedProvider(
        name="vimeo",
        url_patterns=(r"https?://(?:www\.)?vimeo\.com/(?P<id>\d+)/?",),
        embed_template="https://player.vimeo.com/video/{id}",
        iframe_hosts=frozenset({"player.vimeo.com"}),
        iframe_path_prefix="/video/",
        oembed_endpoint="https://vimeo.com/api/oembed.json",
    ),
    EmbedProvider(
        name="dailymotion",
        url_patterns=(r"https?://(?:www\.)?dailymotion\.com/video/(?P<id>[a-zA-Z0-9]+)/?",),
        embed_template="https://www.dailymotion.com/embed/video/{id}",
        iframe_hosts=frozenset({"www.dailymotion.com"}),
        iframe_path_prefix="/embed/video/",
        oembed_endpoint="https://www.dailymotion.com/services/oembed",
    ),
    EmbedProvider(
        name="soundcloud",
        url_patterns=(r"https?://(?:www\.)?soundcloud\.com/(?P<id>[\w-]+(?:/[\w-]+){1,3})/?",),
        embed_template="https://w.soundcloud.com/player/?url=https%3A//soundcloud.com/{id}",
        iframe_hosts=frozenset({"w.soundcloud.com"}),
        iframe_path_prefix="/player/",
        oembed_endpoint="https://soundcloud.com/oembed",
        height=166,
    ),
)


def match_embed(url: str, providers: tuple[EmbedProvider, ...] = DEFAULT_EMBED_PROVIDERS) -> Optional[EmbedMatch]:
    """Resolve a page URL to a trusted player URL.

    Parameters
    ----------
    url : str
        URL written by the author inside ``!(...)``
    providers : tuple of EmbedProvider
        Allow-listed providers, checked in order

    Returns
    -------
    EmbedMatch or None
        The first provider claiming the URL, or None

    """
    for provider in providers:
        src = provider.match(url)
        if src is not None:
            return EmbedMatch(provider=provider, src=src)
    return None


def is_trusted_iframe_src(src: str, providers: tuple[EmbedProvider, ...] = DEFAULT_EMBED_PROVIDERS) -> bool:
    return any(provider.trusts_iframe_src(src) for provider in providers)
