# File: site_insight/engine.py
"""site_insight.engine: оркестрация — обнаружение sitemap, категоризация и фоновый сбор метрик."""

from __future__ import annotations

import asyncio
from typing import Optional, Tuple

from aiohttp import ClientSession, ClientTimeout

from site_insight.config import InsightConfig
from site_insight.crawler.fetcher import SourceFetcher
from site_insight.crawler.models import CategorizedResult
from site_insight.discovery import SitemapDiscovery
from site_insight.emitter import ResultEmitter
from site_insight.errors import NoSitemapFound, RequestValidationError
from site_insight.expansion import SitemapExpander
from site_insight.logger import logger
from site_insight.metrics.engine import MetricsJobEngine
from site_insight.metrics.provider import PageSpeedClient
from site_insight.session import JobSession
from site_insight.titles import TitleResolver
from site_insight.utils import is_http_url, normalize_base_url

__all__ = ["Engine", "validate_site_url"]


def validate_site_url(url: object) -> str:
    """Проверяет входной URL сайта и возвращает его без завершающего слеша."""
    if not isinstance(url, str) or not url.strip():
        raise RequestValidationError("URL is required")
    base = normalize_base_url(url)
    if not is_http_url(base):
        raise RequestValidationError(f"Invalid URL: {url}")
    return base


class Engine:
    """Фасад для CLI, сервера и тестов: держит HTTP-сессию и собирает компоненты конвейера."""

    def __init__(self, config: InsightConfig, session: Optional[ClientSession] = None) -> None:
        """Инициализирует Engine; без внешней сессии создаёт собственную в __aenter__."""
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> Engine:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    def _session(self) -> ClientSession:
        if not self.session:
            raise RuntimeError("Session not initialized")
        return self.session

    async def categorize(self, url: object) -> CategorizedResult:
        """Находит sitemap и возвращает категоризированный список страниц (синхронная часть запроса)."""
        base = validate_site_url(url)
        fetcher = SourceFetcher(self.config, self._session())
        discovery = SitemapDiscovery(fetcher, dedupe=self.config.dedupe_candidates)
        candidates = await discovery.discover(base)
        titles = TitleResolver(
            fetcher,
            max_attempts=self.config.title_attempts,
            backoff_factor=self.config.backoff_factor,
        )
        expander = SitemapExpander(fetcher, titles, batch_size=self.config.batch_size)
        result = await expander.expand(candidates, base)
        if not result:
            raise NoSitemapFound(base)
        return result

    def metrics_engine(self, emitter: ResultEmitter) -> MetricsJobEngine:
        return MetricsJobEngine(
            PageSpeedClient(self._session(), self.config),
            emitter,
            max_in_flight=self.config.max_in_flight,
            outer_attempts=self.config.outer_attempts,
        )

    def start_metrics(
        self, result: CategorizedResult, emitter: ResultEmitter, job: JobSession
    ) -> asyncio.Task:
        """Запускает фоновый сбор метрик; не ждёт его завершения."""
        return self.metrics_engine(emitter).start(result, job)

    async def process(
        self, url: object, emitter: ResultEmitter, job: JobSession
    ) -> Tuple[CategorizedResult, Optional[asyncio.Task]]:
        """Полный запрос: категоризация сразу, метрики в фоне с публикацией в *emitter*.

        Если *job* отменён, пока шла категоризация, метрики не запускаются и задача равна None.
        """
        result = await self.categorize(url)
        if job.cancelled:
            logger.info("Session %s cancelled before metrics started", job.session_id)
            return result, None
        return result, self.start_metrics(result, emitter, job)
