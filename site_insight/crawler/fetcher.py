# site_insight/crawler/fetcher.py
"""
Fetcher module: one best-effort HTTP GET per call, fixed timeout, no retry.

Callers decide what a failure means; the fetcher only classifies it.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from aiohttp import ClientError, ClientSession, ClientTimeout
from site_insight.config import InsightConfig
from site_insight.crawler.models import PageData
from site_insight.errors import RateLimited, SourceUnavailable
from site_insight.logger import logger


class SourceFetcher:
    """Fetches sitemap documents, robots.txt and HTML pages of the crawled site."""

    def __init__(self, config: InsightConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> SourceFetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch(self, url: str) -> PageData:
        """
        GET *url* once.

        Raises RateLimited on HTTP 429 and SourceUnavailable on any other
        non-2xx status, network error or timeout.
        """
        if not self.session:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(url, timeout=ClientTimeout(total=self.config.timeout)) as resp:
                if resp.status == 429:
                    raise RateLimited(url)
                if not 200 <= resp.status < 300:
                    raise SourceUnavailable(url, f"HTTP {resp.status}", resp.status)
                body = await resp.read()
                return PageData(url, body, resp.status, resp.charset)
        except asyncio.TimeoutError as exc:
            logger.debug("Timeout fetching %s", url)
            raise SourceUnavailable(url, "timeout") from exc
        except ClientError as exc:
            raise SourceUnavailable(url, str(exc) or type(exc).__name__) from exc
