# site_insight/metrics/provider.py
"""
PageSpeed Insights client: one device profile per call, retry/backoff, pre-call delay.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

from aiohttp import ClientError, ClientSession, ClientTimeout
from site_insight.config import InsightConfig
from site_insight.crawler.models import MetricsResult, ScoreSet
from site_insight.errors import ProviderPermanentError, ProviderTransientError
from site_insight.logger import logger
from site_insight.session import JobSession

STRATEGIES: Tuple[str, str] = ("desktop", "mobile")
CATEGORIES: Tuple[str, ...] = ("performance", "accessibility", "seo", "best-practices")


class PageSpeedClient:
    """Calls the PageSpeed API with the delay and retry rules of the configuration."""

    _RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)

    def __init__(self, session: ClientSession, config: InsightConfig) -> None:
        self.session = session
        self.config = config

    def _params(self, url: str, strategy: str) -> List[Tuple[str, str]]:
        params = [("url", url)]
        if self.config.api_key:
            params.append(("key", self.config.api_key))
        params.extend(("category", name) for name in CATEGORIES)
        params.append(("strategy", strategy))
        return params

    async def _call(self, url: str, strategy: str) -> Dict[str, Any]:
        try:
            async with self.session.get(
                self.config.endpoint,
                params=self._params(url, strategy),
                timeout=ClientTimeout(total=self.config.provider_timeout),
            ) as resp:
                if resp.status in self._RETRY_STATUS:
                    raise ProviderTransientError(url, strategy, f"HTTP {resp.status}", resp.status)
                if resp.status != 200:
                    raise ProviderPermanentError(url, strategy, f"HTTP {resp.status}", resp.status)
                payload = await resp.json(content_type=None)
        except (ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise ProviderPermanentError(url, strategy, str(exc) or type(exc).__name__) from exc
        if not isinstance(payload, dict):
            raise ProviderPermanentError(url, strategy, "unexpected payload")
        return payload

    async def fetch_scores(self, url: str, strategy: str, job: Optional[JobSession] = None) -> ScoreSet:
        """Scores of *url* for one *strategy*; all-None when every attempt failed."""
        job = job or JobSession()
        attempts = self.config.provider_attempts
        for attempt in range(1, attempts + 1):
            # provider per-key quota
            if not await job.sleep(self.config.provider_delay):
                break
            try:
                payload = await self._call(url, strategy)
            except ProviderTransientError as exc:
                logger.warning("Error fetching PageSpeed Insights (attempt %d): %s", attempt, exc)
                if attempt == attempts:
                    break
                wait = self.config.backoff_factor * 2**attempt
                logger.debug("Retrying %s %s in %.1f seconds", strategy, url, wait)
                if not await job.sleep(wait):
                    break
                continue
            except ProviderPermanentError as exc:
                logger.warning("PageSpeed Insights failed for %s: %s", url, exc)
                break
            return ScoreSet.from_lighthouse(payload)
        return ScoreSet.empty()

    async def fetch_metrics(self, url: str, job: Optional[JobSession] = None) -> MetricsResult:
        """Desktop and mobile run side by side; both are awaited before the result is built."""
        desktop, mobile = await asyncio.gather(
            *(self.fetch_scores(url, strategy, job) for strategy in STRATEGIES)
        )
        return MetricsResult.build(url, desktop, mobile)
