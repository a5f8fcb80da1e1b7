#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/processors/resolvers.py
"""Resolvers for mentions, embeds and math.

Mentions and embeds may need an external collaborator (a user directory, an
oEmbed endpoint). Those calls are awaited concurrently, each bounded by
``RenderOptions.collaborator_timeout``; a timeout or an error applies the
fallback instead of failing the render.

Resolvers only ever see nodes the tokenizers produced, so nothing inside a
code span or code block is touched.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional
from urllib.parse import quote

from safemd.ast.nodes import Document, Embed, Link, Math, Mention, Node, Paragraph, Text
from safemd.ast.transforms import NodeTransformer
from safemd.ast.visitors import NodeVisitor
from safemd.constants import MAX_MATH_LENGTH, MHCHEM_COMMANDS
from safemd.diagnostics import DiagnosticCollector
from safemd.embeds import EmbedMatch, match_embed
from safemd.options import RenderOptions

logger = logging.getLogger(__name__)

# Blocking collaborators run here. asyncio.run() joins its default executor on
# shutdown, so a lookup abandoned after its timeout would still hold up render().
_COLLABORATOR_EXECUTOR = ThreadPoolExecutor(max_workers=8, thread_name_prefix="safemd-collaborator")


class _NodeCollector(NodeVisitor):
    """Collect every node of the given classes, in document order."""

    def __init__(self, *node_types: type[Node]):
        self.node_types = node_types
        self.found: list[Node] = []

    def generic_visit(self, node: Node) -> None:
        if isinstance(node, self.node_types):
            self.found.append(node)
        super().generic_visit(node)


def _collect(document: Node, *node_types: type[Node]) -> list[Node]:
    collector = _NodeCollector(*node_types)
    collector.visit(document)
    return collector.found


class _MentionCollector(_NodeCollector):
    """Collect mentions outside link text."""

    def __init__(self) -> None:
        super().__init__(Mention)

    def visit_link(self, node: Link) -> None:  # type: ignore[override]
        return None


async def _call_with_timeout(func: Any, *args: Any, timeout: float) -> Any:
    """Call a sync or async collaborator, awaiting its result under ``timeout``.

    Coroutine functions run on the event loop. Anything else runs in a worker
    thread, so a blocking lookup cannot stall the loop past ``timeout``.

    Raises
    ------
    asyncio.TimeoutError
        If the collaborator does not answer within ``timeout`` seconds

    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    if inspect.iscoroutinefunction(func):
        return await asyncio.wait_for(func(*args), timeout=timeout)

    result = await asyncio.wait_for(
        loop.run_in_executor(_COLLABORATOR_EXECUTOR, functools.partial(func, *args)), timeout=timeout
    )
    if inspect.isawaitable(result):
        result = await asyncio.wait_for(result, timeout=max(deadline - loop.time(), 0))
    return result


class MentionResolver:
    """Confirm ``@name`` mentions through the configured lookup.

    Parameters
    ----------
    options : RenderOptions
        Supplies ``mention_resolver``, ``mention_url_template`` and the timeout
    diagnostics : DiagnosticCollector
        Receives one ``unresolved-reference`` per unconfirmed name

    """

    def __init__(self, options: RenderOptions, diagnostics: DiagnosticCollector):
        self.options = options
        self.diagnostics = diagnostics

    async def _lookup(self, name: str) -> bool:
        try:
            confirmed = await _call_with_timeout(
                self.options.mention_resolver, name, timeout=self.options.collaborator_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Mention lookup timed out for %r", name)
            return False
        except Exception as e:
            logger.warning("Mention lookup failed for %r: %s", name, e)
            return False
        return bool(confirmed)

    async def process(self, document: Document) -> Document:
        """Return a document where only confirmed mentions remain ``Mention`` nodes."""
        collector = _MentionCollector()
        collector.visit(document)
        mentions = collector.found
        if not mentions:
            return document

        names = list(dict.fromkeys(m.name for m in mentions))  # type: ignore[attr-defined]
        if self.options.mention_resolver is None:
            results = [False] * len(names)
        else:
            results = await asyncio.gather(*(self._lookup(name) for name in names))
        confirmed = dict(zip(names, results))

        for name, ok in confirmed.items():
            if not ok:
                self.diagnostics.unresolved(f"Mention could not be resolved: @{name}", node_type="Mention", detail=name)

        logger.debug("Resolved %d of %d mentioned names", sum(results), len(names))
        return _MentionRewriter(confirmed, self.options.mention_url_template).transform(document)  # type: ignore[return-value]


class _MentionRewriter(NodeTransformer):
    def __init__(self, confirmed: dict[str, bool], url_template: str):
        self.confirmed = confirmed
        self.url_template = url_template
        self._link_depth = 0

    def visit_link(self, node: Link) -> Node:  # type: ignore[override]
        # A mention link nested in link text would be an <a> inside an <a>
        self._link_depth += 1
        try:
            return self.generic_visit(node)
        finally:
            self._link_depth -= 1

    def visit_mention(self, node: Mention) -> Node:  # type: ignore[override]
        if self._link_depth or not self.confirmed.get(node.name):
            return Text(content=node.raw)
        url = self.url_template.format(name=quote(node.name, safe=""))
        return Mention(name=node.name, raw=node.raw, metadata={**node.metadata, "url": url})


class EmbedResolver:
    """Match embeds against the provider allow-list.

    Recognized URLs get the provider's player URL as ``src``; with an
    ``embed_fetcher`` configured, the oEmbed title is fetched as well.
    Unrecognized URLs become a plain link.

    Parameters
    ----------
    options : RenderOptions
        Supplies the provider table, ``embed_fetcher`` and the timeout
    diagnostics : DiagnosticCollector
        Receives an ``unresolved-reference`` for every unrecognized URL

    """

    def __init__(self, options: RenderOptions, diagnostics: DiagnosticCollector):
        self.options = options
        self.diagnostics = diagnostics

    async def _fetch_title(self, url: str, match: EmbedMatch) -> Optional[str]:
        endpoint = match.provider.oembed_endpoint
        if self.options.embed_fetcher is None or endpoint is None:
            return None
        try:
            metadata = await _call_with_timeout(
                self.options.embed_fetcher, url, endpoint, timeout=self.options.collaborator_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("oEmbed fetch timed out for %s", url)
            return None
        except Exception as e:
            logger.warning("oEmbed fetch failed for %s: %s", url, e)
            return None

        title = metadata.get("title") if hasattr(metadata, "get") else None
        if not isinstance(title, str) or not title.strip():
            return None
        return title.strip()

    async def process(self, document: Document) -> Document:
        """Return a document with every embed resolved or downgraded to a link."""
        embeds = _collect(document, Embed)
        if not embeds:
            return document

        providers = self.options.sanitizer.embed_providers
        urls = list(dict.fromkeys(e.url for e in embeds))  # type: ignore[attr-defined]
        matches = {url: match_embed(url, providers) for url in urls}
        known = [url for url in urls if matches[url] is not None]
        titles = await asyncio.gather(*(self._fetch_title(url, matches[url]) for url in known))  # type: ignore[arg-type]

        for url in urls:
            if matches[url] is None:
                self.diagnostics.unresolved(
                    f"Embed URL does not belong to a supported provider: {url}", node_type="Embed", detail=url
                )

        return _EmbedRewriter(matches, dict(zip(known, titles))).transform(document)  # type: ignore[return-value]


class _EmbedRewriter(NodeTransformer):
    def __init__(self, matches: dict[str, Optional[EmbedMatch]], titles: dict[str, Optional[str]]):
        self.matches = matches
        self.titles = titles

    def visit_embed(self, node: Embed) -> Node:  # type: ignore[override]
        match = self.matches.get(node.url)
        if match is None:
            return Paragraph(content=[Link(url=node.url, content=[Text(content=node.url)])])
        return Embed(
            url=node.url,
            src=match.src,
            provider=match.provider.name,
            title=self.titles.get(node.url),
            width=match.provider.width,
            height=match.provider.height,
            metadata=node.metadata.copy(),
            source_location=node.source_location,
        )


def _braces_balanced(content: str) -> bool:
    depth = 0
    escaped = False
    for char in content:
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


_MHCHEM_RE = re.compile("(?:" + "|".join(re.escape(c) for c in MHCHEM_COMMANDS) + r")(?![A-Za-z])")


class MathResolver(NodeTransformer):
    """Validate math nodes and record the TeX extensions they need.

    Invalid math (empty, too long, unbalanced braces) is turned back into its
    literal source text.

    Parameters
    ----------
    diagnostics : DiagnosticCollector
        Receives an ``unresolved-reference`` for every invalid formula

    """

    def __init__(self, diagnostics: DiagnosticCollector, max_length: int = MAX_MATH_LENGTH):
        self.diagnostics = diagnostics
        self.max_length = max_length

    def validate(self, content: str) -> Optional[str]:
        """Return why ``content`` is not renderable math, or None when it is."""
        if not content.strip():
            return "empty formula"
        if len(content) > self.max_length:
            return f"formula longer than {self.max_length} characters"
        if not _braces_balanced(content):
            return "unbalanced braces"
        return None

    def visit_math(self, node: Math) -> Node:  # type: ignore[override]
        problem = self.validate(node.content)
        if problem is not None:
            self.diagnostics.unresolved(f"Invalid math ({problem})", node_type="Math", detail=node.content[:80])
            if node.inline:
                return Text(content=f"${node.content}$")
            return Paragraph(content=[Text(content=f"$$\n{node.content}\n$$")])

        metadata = node.metadata.copy()
        if _MHCHEM_RE.search(node.content):
            metadata["extensions"] = ["mhchem"]
        return Math(content=node.content, inline=node.inline, metadata=metadata, source_location=node.source_location)

    def process(self, document: Document) -> Document:
        return self.transform(document)  # type: ignore[return-value]
