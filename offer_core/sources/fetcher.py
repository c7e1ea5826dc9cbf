"""HTTP retrieval of offer pages."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Final, Mapping, Optional

import aiohttp

LOGGER = logging.getLogger(__name__)

PRIMARY_HEADERS: Final[Mapping[str, str]] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "de,en-US;q=0.7,en;q=0.3",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Pragma": "no-cache",
    "Cache-Control": "no-cache",
}

FALLBACK_HEADERS: Final[Mapping[str, str]] = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/15.0 Safari/605.1.15"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml",
    "Accept-Language": "de-DE,de;q=0.9",
}


class FetchError(Exception):
    """Raised when an offer page could not be retrieved."""

    def __init__(self, kind: str, url: str, status: Optional[int] = None, detail: str = "") -> None:
        self.kind = kind
        self.url = url
        self.status = status
        message = f"{kind} error fetching {url}"
        if status is not None:
            message += f" (HTTP {status})"
        if detail:
            message += f": {detail}"
        super().__init__(message)

    @property
    def fallback_eligible(self) -> bool:
        """Whether a second attempt with another client identity is worthwhile."""

        if self.kind in {"connection", "timeout"}:
            return True
        return self.kind == "http" and self.status is not None and 400 <= self.status < 600


Fetcher = Callable[..., Awaitable[str]]


async def fetch_html(
    url: str,
    *,
    headers: Mapping[str, str] = PRIMARY_HEADERS,
    timeout: float = 10.0,
) -> str:
    """Return the body of ``url`` or raise :class:`FetchError`."""

    client_timeout = aiohttp.ClientTimeout(total=timeout)
    try:
        async with aiohttp.ClientSession(timeout=client_timeout, headers=dict(headers)) as session:
            async with session.get(url) as response:
                if response.status >= 400:
                    raise FetchError("http", url, status=response.status)
                body = await response.text(errors="replace")
    except asyncio.TimeoutError as exc:
        raise FetchError("timeout", url, detail=str(exc)) from exc
    except aiohttp.ClientConnectorError as exc:
        raise FetchError("connection", url, detail=str(exc)) from exc
    except aiohttp.ClientError as exc:
        raise FetchError("client", url, detail=str(exc)) from exc

    if not body:
        raise FetchError("empty", url, detail="no data received")
    return body


async def fetch_with_retry(
    url: str,
    *,
    fetch: Fetcher = fetch_html,
    attempts: int = 3,
    backoff_seconds: float = 1.0,
    headers: Mapping[str, str] = PRIMARY_HEADERS,
    timeout: float = 10.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> str:
    """Call ``fetch`` up to ``attempts`` times with a fixed pause in between.

    The error of the final attempt is re-raised unchanged.
    """

    last_error: Optional[FetchError] = None
    for attempt in range(1, max(1, attempts) + 1):
        try:
            return await fetch(url, headers=headers, timeout=timeout)
        except FetchError as exc:
            last_error = exc
            LOGGER.warning("Fetch attempt %s/%s for %s failed: %s", attempt, attempts, url, exc)
            if attempt < attempts:
                await sleep(backoff_seconds)
    assert last_error is not None
    raise last_error


__all__ = [
    "FALLBACK_HEADERS",
    "FetchError",
    "Fetcher",
    "PRIMARY_HEADERS",
    "fetch_html",
    "fetch_with_retry",
]
