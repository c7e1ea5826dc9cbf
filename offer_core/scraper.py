"""Retrieval of offer pages and conversion into :class:`OfferData`."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

from .config import PipelineConfig
from .emoji import DEFAULT_MAPPER, EmojiMapper
from .extractor import extract, extract_minimal
from .models import ExtractionFailure, OfferData
from .sources import (
    DEFAULT_PROFILE,
    FALLBACK_HEADERS,
    FetchError,
    Fetcher,
    SiteProfile,
    fetch_html,
    fetch_with_retry,
    profile_for_url,
)

LOGGER = logging.getLogger(__name__)

ScrapeResult = Union[OfferData, ExtractionFailure]


async def _fallback_offer(
    url: str,
    config: PipelineConfig,
    fetch: Fetcher,
    profile: SiteProfile,
    mapper: EmojiMapper,
    reason: str,
) -> ScrapeResult:
    """Retry once with another client identity and parse only the basics."""

    LOGGER.info("Retrying %s with fallback client after: %s", url, reason)
    try:
        html = await fetch(url, headers=FALLBACK_HEADERS, timeout=config.fallback_fetch_timeout)
    except FetchError as exc:
        LOGGER.error("Fallback fetch for %s failed as well: %s", url, exc)
        return ExtractionFailure(url=url, reason="fetch-failed", detail=str(exc))
    return extract_minimal(html, url, profile=profile, mapper=mapper)


async def scrape_offer(
    url: str,
    *,
    config: Optional[PipelineConfig] = None,
    fetch: Fetcher = fetch_html,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    profile: Optional[SiteProfile] = None,
    mapper: EmojiMapper = DEFAULT_MAPPER,
) -> ScrapeResult:
    """Fetch ``url`` and extract the offer it describes.

    Fetch problems never escape: they end in the minimal parser or in an
    :class:`ExtractionFailure` with reason ``fetch-failed``.
    """

    config = config or PipelineConfig()
    profile = profile or profile_for_url(url) or DEFAULT_PROFILE

    try:
        html = await fetch_with_retry(
            url,
            fetch=fetch,
            attempts=config.fetch_attempts,
            backoff_seconds=config.fetch_backoff_seconds,
            timeout=config.fetch_timeout,
            sleep=sleep,
        )
    except FetchError as exc:
        if exc.fallback_eligible:
            return await _fallback_offer(url, config, fetch, profile, mapper, reason=str(exc))
        LOGGER.error("Fetching %s failed: %s", url, exc)
        return ExtractionFailure(url=url, reason="fetch-failed", detail=str(exc))

    return extract(
        html,
        url,
        profile=profile,
        mapper=mapper,
        max_duration_days=config.max_duration_days,
    )


__all__ = ["ScrapeResult", "scrape_offer"]
