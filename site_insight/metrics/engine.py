# site_insight/metrics/engine.py
"""
Metrics job engine: fetches PageSpeed scores for every categorized URL in the
background and publishes each result as soon as it is ready.

A fixed pool of workers drains a queue of pending URLs, so the number of
URLs in flight never exceeds ``max_in_flight``. Results are published in
completion order.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional

from site_insight.crawler.models import CategorizedResult, MetricsResult, PageEntry
from site_insight.emitter import PAGESPEED_EVENT, ResultEmitter
from site_insight.logger import logger
from site_insight.metrics.provider import PageSpeedClient
from site_insight.session import JobSession


@dataclass(slots=True)
class JobStats:
    """Outcome counters of one engine run."""

    pushed: int = 0
    failed: int = 0
    cancelled: int = 0


class MetricsJobEngine:
    """Bounded worker pool around :class:`PageSpeedClient`."""

    def __init__(
        self,
        client: PageSpeedClient,
        emitter: ResultEmitter,
        max_in_flight: int = 4,
        outer_attempts: int = 5,
    ) -> None:
        self.client = client
        self.emitter = emitter
        self.max_in_flight = max(1, max_in_flight)
        self.outer_attempts = max(1, outer_attempts)

    def start(self, result: CategorizedResult, job: JobSession) -> asyncio.Task:
        """Launch :meth:`run` in the background and register it with *job*."""
        task = asyncio.create_task(self.run(result, job), name=f"metrics-{job.session_id}")
        return job.track(task)

    async def run(self, result: CategorizedResult, job: JobSession) -> JobStats:
        stats = JobStats()
        index = result.by_url()
        urls = list(index)
        if not urls:
            return stats
        queue: asyncio.Queue[str] = asyncio.Queue()
        for url in urls:
            queue.put_nowait(url)
        logger.info("Metrics job for session %s: %d URLs", job.session_id, len(urls))

        workers = [
            asyncio.create_task(self._worker(queue, index, job, stats))
            for _ in range(min(self.max_in_flight, len(urls)))
        ]
        try:
            await queue.join()
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
        logger.info(
            "Metrics job for session %s done: %d pushed, %d failed, %d cancelled",
            job.session_id, stats.pushed, stats.failed, stats.cancelled,
        )
        return stats

    async def _worker(
        self,
        queue: asyncio.Queue[str],
        index: Dict[str, List[PageEntry]],
        job: JobSession,
        stats: JobStats,
    ) -> None:
        while True:
            url = await queue.get()
            try:
                if job.cancelled:
                    stats.cancelled += 1
                    continue
                metrics = await self._measure(url, job)
                if metrics is None:
                    if job.cancelled:
                        stats.cancelled += 1
                    else:
                        stats.failed += 1
                        logger.error("No PageSpeed score for %s after %d attempts", url, self.outer_attempts)
                    continue
                for entry in index[url]:
                    entry.metrics = metrics
                await self.emitter.publish(
                    job.session_id,
                    {"event": PAGESPEED_EVENT, "url": url, "pageSpeedData": metrics.to_dict()},
                )
                stats.pushed += 1
                logger.info("Pushed PageSpeed result for %s", url)
            except Exception:
                stats.failed += 1
                logger.exception("Metrics task for %s failed", url)
            finally:
                queue.task_done()

    async def _measure(self, url: str, job: JobSession) -> Optional[MetricsResult]:
        for attempt in range(1, self.outer_attempts + 1):
            if job.cancelled:
                return None
            metrics = await self.client.fetch_metrics(url, job)
            if metrics.has_usable_score():
                return metrics
            logger.debug("No performance score for %s (attempt %d/%d)", url, attempt, self.outer_attempts)
        return None
