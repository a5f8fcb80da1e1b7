#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/utils/network.py
"""oEmbed metadata fetching.

The default embed fetcher queries a provider's oEmbed endpoint over HTTPS.
It is opt-in: pass :func:`fetch_oembed` as ``RenderOptions.embed_fetcher``.
Rendering never depends on the fetch succeeding; the embed resolver keeps
the static embed whenever this raises.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from safemd.constants import DEFAULT_COLLABORATOR_TIMEOUT, DEFAULT_USER_AGENT, MAX_OEMBED_RESPONSE_BYTES

logger = logging.getLogger(__name__)


class OEmbedError(Exception):
    """Raised when an oEmbed endpoint returns an unusable response."""


async def _read_limited(
    client: httpx.AsyncClient, endpoint: str, params: dict[str, str], max_size_bytes: int
) -> bytes:
    """GET ``endpoint`` and return the body, aborting once it passes ``max_size_bytes``."""
    async with client.stream("GET", endpoint, params=params) as response:
        response.raise_for_status()

        declared = response.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > max_size_bytes:
            raise OEmbedError(f"oEmbed response too large: {declared} bytes (max: {max_size_bytes})")

        chunks = []
        total_size = 0
        async for chunk in response.aiter_bytes():
            total_size += len(chunk)
            if total_size > max_size_bytes:
                raise OEmbedError(f"oEmbed response too large: exceeded {max_size_bytes} bytes during streaming")
            chunks.append(chunk)
    return b"".join(chunks)


async def fetch_oembed(
    url: str,
    endpoint: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_COLLABORATOR_TIMEOUT,
    max_size_bytes: int = MAX_OEMBED_RESPONSE_BYTES,
) -> dict[str, Any]:
    """Fetch oEmbed metadata for a media page.

    Parameters
    ----------
    url : str
        Page URL the author embedded
    endpoint : str
        Provider oEmbed endpoint (must be HTTPS)
    client : httpx.AsyncClient, optional
        Client to reuse; a short-lived one is created when omitted
    timeout : float, default 2.0
        Request timeout in seconds
    max_size_bytes : int, default 256 KiB
        Largest response body accepted

    Returns
    -------
    dict
        Decoded oEmbed JSON object

    Raises
    ------
    OEmbedError
        If the endpoint is not HTTPS or the response is too large or not a JSON object
    httpx.HTTPError
        On transport errors and non-2xx responses

    """
    if not endpoint.startswith("https://"):
        raise OEmbedError(f"oEmbed endpoint must use HTTPS: {endpoint}")

    params = {"url": url, "format": "json"}
    if client is None:
        async with httpx.AsyncClient(
            timeout=timeout, follow_redirects=False, headers={"User-Agent": DEFAULT_USER_AGENT}
        ) as owned_client:
            body = await _read_limited(owned_client, endpoint, params, max_size_bytes)
    else:
        body = await _read_limited(client, endpoint, params, max_size_bytes)

    try:
        data = json.loads(body)
    except ValueError as e:
        raise OEmbedError(f"oEmbed response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise OEmbedError("oEmbed response is not a JSON object")

    logger.debug("Fetched oEmbed metadata for %s", url)
    return data
