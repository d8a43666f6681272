# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Dict, Optional

import pytest
import pytest_asyncio
from aiohttp import web

from site_insight.config import InsightConfig

Starter = Callable[[web.Application], Awaitable[str]]


def make_config(**overrides: Any) -> InsightConfig:
    """Config without pre-call delays or backoff waits, so retries are instant."""
    values: Dict[str, Any] = {
        "timeout": 2.0,
        "user_agent": "TestAgent/1.0",
        "provider_delay": 0,
        "backoff_factor": 0,
        "api_key": "test-key",
    }
    values.update(overrides)
    return InsightConfig(**values)


def urlset(*entries: str, lastmod: Optional[str] = None) -> str:
    """Render a ``<urlset>`` sitemap listing *entries*."""
    stamp = f"<lastmod>{lastmod}</lastmod>" if lastmod else ""
    body = "".join(f"<url><loc>{loc}</loc>{stamp}</url>" for loc in entries)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{body}</urlset>'
    )


def sitemapindex(*entries: str, lastmod: Optional[str] = None) -> str:
    """Render a ``<sitemapindex>`` listing *entries*."""
    stamp = f"<lastmod>{lastmod}</lastmod>" if lastmod else ""
    body = "".join(f"<sitemap><loc>{loc}</loc>{stamp}</sitemap>" for loc in entries)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{body}</sitemapindex>'
    )


def xml_response(text: str) -> web.Response:
    return web.Response(text=text, content_type="application/xml")


def html_page(title: Optional[str]) -> web.Response:
    head = f"<title> {title} </title>" if title is not None else ""
    return web.Response(text=f"<html><head>{head}</head><body></body></html>", content_type="text/html")


def lighthouse(performance: Optional[float] = 0.9, seo: float = 0.8) -> Dict[str, Any]:
    categories: Dict[str, Any] = {
        "accessibility": {"score": 0.7},
        "best-practices": {"score": 0.6},
        "seo": {"score": seo},
    }
    if performance is not None:
        categories["performance"] = {"score": performance}
    return {"lighthouseResult": {"categories": categories}}


@pytest.fixture()
def config() -> InsightConfig:
    return make_config()


@pytest_asyncio.fixture
async def serve(unused_tcp_port_factory) -> AsyncIterator[Starter]:
    """Start aiohttp apps on free ports; yields a starter returning the base URL."""
    runners = []

    async def _start(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "127.0.0.1", port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{port}"

    try:
        yield _start
    finally:
        for runner in runners:
            await runner.cleanup()
