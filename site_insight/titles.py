# File: site_insight/titles.py
"""site_insight.titles: заголовок страницы для отчёта."""

from __future__ import annotations

import asyncio

from site_insight.crawler.fetcher import SourceFetcher
from site_insight.errors import RateLimited, SourceUnavailable
from site_insight.logger import logger
from site_insight.parser.html_parser import parse_title

PLACEHOLDER_TITLE = "Untitled"


class TitleResolver:
    """Resolves a page URL to its ``<title>``; never raises."""

    def __init__(self, fetcher: SourceFetcher, max_attempts: int = 3, backoff_factor: float = 1.0) -> None:
        self.fetcher = fetcher
        self.max_attempts = max(1, max_attempts)
        self.backoff_factor = backoff_factor

    async def resolve(self, url: str) -> str:
        for attempt in range(1, self.max_attempts + 1):
            try:
                page = await self.fetcher.fetch(url)
            except RateLimited:
                if attempt == self.max_attempts:
                    logger.warning("Rate limited fetching title of %s, giving up", url)
                    break
                backoff = self.backoff_factor * 2**attempt
                logger.debug("Retry %d/%d for %s after %.2f s", attempt, self.max_attempts, url, backoff)
                await asyncio.sleep(backoff)
                continue
            except SourceUnavailable as exc:
                logger.debug("Error fetching title for %s: %s", url, exc)
                break
            try:
                title = parse_title(page.text)
            except Exception as exc:
                # bs4 may choke on binary payloads served as pages
                logger.debug("Cannot parse title of %s: %s", url, exc)
                break
            return title or PLACEHOLDER_TITLE
        return PLACEHOLDER_TITLE
