# File: tests/test_server.py
from __future__ import annotations

import asyncio
from collections import Counter

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from site_insight.emitter import SubscriberHub
from site_insight.server import create_app

from conftest import html_page, lighthouse, make_config, sitemapindex, urlset, xml_response


def crawled_site() -> web.Application:
    """A small site that also plays the PageSpeed provider."""
    app = web.Application()

    async def index(request):
        return xml_response(sitemapindex(f"{request.url.origin()}/pages.xml"))

    async def pages(request):
        origin = request.url.origin()
        return xml_response(urlset(f"{origin}/event/a", f"{origin}/resource/b"))

    async def page(request):
        return html_page(request.match_info["slug"].upper())

    async def pagespeed(_):
        return web.json_response(lighthouse(0.99))

    app.router.add_get("/sitemap_index.xml", index)
    app.router.add_get("/pages.xml", pages)
    app.router.add_get("/runPagespeed", pagespeed)
    app.router.add_get("/{kind}/{slug}", page)
    return app


@pytest.mark.asyncio()
async def test_missing_url_is_rejected():
    async with TestClient(TestServer(create_app(make_config()))) as client:
        resp = await client.post("/api/sitemap/fetch", json={})
        body = await resp.json()
        bad = await client.post("/api/sitemap/fetch", data="not json")

    assert resp.status == 400
    assert body == {"status": 400, "message": "URL is required", "data": {}}
    assert bad.status == 400


@pytest.mark.asyncio()
async def test_no_sitemap_is_not_found(serve):
    empty = web.Application()
    base = await serve(empty)

    async with TestClient(TestServer(create_app(make_config()))) as client:
        resp = await client.post("/api/sitemap/fetch", json={"url": base})
        body = await resp.json()

    assert resp.status == 404
    assert body["message"] == "No sitemap URLs found"


@pytest.mark.asyncio()
async def test_fetch_returns_categories_and_streams_metrics(serve):
    base = await serve(crawled_site())
    config = make_config(pagespeed_endpoint=f"{base}/runPagespeed")

    async with TestClient(TestServer(create_app(config))) as client:
        ws = await client.ws_connect("/ws?session=tab-1")
        resp = await client.post("/api/sitemap/fetch", json={"url": base, "session": "tab-1"})
        body = await resp.json()

        events = [await ws.receive_json(timeout=5), await ws.receive_json(timeout=5)]
        await ws.close()

    assert resp.status == 200
    assert body["message"] == "Sitemap URLs fetched successfully"
    sitemaps = body["data"]["sitemaps"]
    assert sitemaps == {
        "events": [{"url": f"{base}/event/a", "title": "A", "lastModified": None}],
        "resources": [{"url": f"{base}/resource/b", "title": "B", "lastModified": None}],
    }
    assert sorted(e["url"] for e in events) == [f"{base}/event/a", f"{base}/resource/b"]
    assert all(e["event"] == "pagespeed_report" for e in events)
    assert all(e["pageSpeedData"]["mobile"]["performance"] == 0.99 for e in events)


async def until(predicate, timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        assert loop.time() < deadline, "condition not reached in time"
        await asyncio.sleep(0.01)


@pytest.mark.asyncio()
async def test_dead_sitemap_is_not_found(serve):
    app = web.Application()

    async def robots(request):
        return web.Response(text=f"Sitemap: {request.url.origin()}/gone.xml\n", content_type="text/plain")

    app.router.add_get("/robots.txt", robots)
    base = await serve(app)
    hub = SubscriberHub()

    async with TestClient(TestServer(create_app(make_config(), hub=hub))) as client:
        resp = await client.post("/api/sitemap/fetch", json={"url": base, "session": "s"})
        body = await resp.json()

    assert resp.status == 404
    assert body == {"status": 404, "message": "No sitemap URLs found", "data": {}}
    assert hub.jobs == {}


def slow_pagespeed_site(calls: Counter, delay: float = 0.3) -> web.Application:
    """Four event pages; every PageSpeed answer takes *delay* seconds."""
    app = web.Application()

    async def sitemap(request):
        origin = request.url.origin()
        return xml_response(urlset(*(f"{origin}/event/e{n}" for n in range(4))))

    async def page(request):
        return html_page(request.match_info["slug"])

    async def pagespeed(request):
        calls[request.query["url"]] += 1
        await asyncio.sleep(delay)
        return web.json_response(lighthouse(0.8))

    app.router.add_get("/sitemap.xml", sitemap)
    app.router.add_get("/runPagespeed", pagespeed)
    app.router.add_get("/{kind}/{slug}", page)
    return app


@pytest.mark.asyncio()
async def test_closing_websocket_cancels_running_job(serve):
    calls: Counter = Counter()
    base = await serve(slow_pagespeed_site(calls))
    config = make_config(pagespeed_endpoint=f"{base}/runPagespeed", max_in_flight=1)
    hub = SubscriberHub()

    async with TestClient(TestServer(create_app(config, hub=hub))) as client:
        ws = await client.ws_connect("/ws?session=tab-2")
        resp = await client.post("/api/sitemap/fetch", json={"url": base, "session": "tab-2"})
        assert resp.status == 200
        job = hub.jobs["tab-2"]
        assert job.active == 1

        await ws.close()
        await until(lambda: job.cancelled)
        await asyncio.wait_for(job.wait(), timeout=5)

    # only the URL already in flight reached the provider, desktop and mobile
    assert sum(calls.values()) <= 2
    assert "tab-2" not in hub.jobs


@pytest.mark.asyncio()
async def test_disconnect_during_categorization_starts_no_metrics(serve):
    calls: Counter = Counter()
    reached, release = asyncio.Event(), asyncio.Event()
    app = web.Application()

    async def sitemap(request):
        reached.set()
        await release.wait()
        return xml_response(urlset(f"{request.url.origin()}/event/a"))

    async def page(_):
        return html_page("A")

    async def pagespeed(request):
        calls[request.query["url"]] += 1
        return web.json_response(lighthouse(0.8))

    app.router.add_get("/sitemap.xml", sitemap)
    app.router.add_get("/runPagespeed", pagespeed)
    app.router.add_get("/event/a", page)
    base = await serve(app)
    config = make_config(pagespeed_endpoint=f"{base}/runPagespeed")
    hub = SubscriberHub()

    async with TestClient(TestServer(create_app(config, hub=hub))) as client:
        ws = await client.ws_connect("/ws?session=tab-3")
        post = asyncio.create_task(
            client.post("/api/sitemap/fetch", json={"url": base, "session": "tab-3"})
        )
        await asyncio.wait_for(reached.wait(), timeout=5)
        await ws.close()
        await until(lambda: hub.subscriber_count("tab-3") == 0)
        release.set()
        resp = await post
        body = await resp.json()

    assert resp.status == 200
    assert body["data"]["sitemaps"]["events"][0]["url"] == f"{base}/event/a"
    assert calls == Counter()
    assert hub.jobs == {}
