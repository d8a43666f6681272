# File: site_insight/server.py
"""
aiohttp application exposing the pipeline.

Routes
------
``POST /api/sitemap/fetch``  body ``{"url": ..., "session": ...}``; answers with the
                             categorized sitemap and starts the metrics job.
``GET  /ws?session=<id>``    websocket receiving ``pagespeed_report`` events of the session.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Dict, Optional

from aiohttp import WSMsgType, web

from site_insight.config import InsightConfig
from site_insight.emitter import SubscriberHub
from site_insight.engine import Engine
from site_insight.errors import NoSitemapFound, RequestValidationError, SiteInsightError
from site_insight.logger import logger

DEFAULT_SESSION = "default"

ENGINE_KEY = web.AppKey("engine", Engine)
HUB_KEY = web.AppKey("hub", SubscriberHub)
CONFIG_KEY = web.AppKey("config", InsightConfig)


def envelope(status: int, message: str, data: Optional[Dict[str, Any]] = None) -> web.Response:
    return web.json_response({"status": status, "message": message, "data": data or {}}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except NoSitemapFound as exc:
        return envelope(exc.status, exc.message)
    except RequestValidationError as exc:
        return envelope(exc.status, exc.message)
    except SiteInsightError as exc:
        logger.error("Error fetching sitemap: %s", exc)
        return envelope(exc.status, "Error fetching sitemap", {"error": exc.message})
    except Exception as exc:
        logger.exception("Unhandled exception: %s", exc)
        return envelope(500, "Error fetching sitemap", {"error": str(exc)})


async def fetch_sitemap(request: web.Request) -> web.Response:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise RequestValidationError("Request body must be JSON") from None
    if not isinstance(body, dict):
        raise RequestValidationError("Request body must be a JSON object")

    engine = request.app[ENGINE_KEY]
    hub = request.app[HUB_KEY]
    session_id = str(body.get("session") or DEFAULT_SESSION)

    job = hub.session(session_id)
    task = None
    try:
        result, task = await engine.process(body.get("url"), hub, job)
    finally:
        if task is None:
            hub.forget(job)
        else:
            task.add_done_callback(lambda _: hub.forget(job))
    return envelope(200, "Sitemap URLs fetched successfully", {"sitemaps": result.to_dict()})


async def websocket_handler(request: web.Request) -> web.WebSocketResponse:
    hub = request.app[HUB_KEY]
    session_id = request.query.get("session") or DEFAULT_SESSION
    ws = web.WebSocketResponse(heartbeat=30.0)
    # attach before the handshake, events are never replayed
    subscription = hub.subscribe(session_id)

    async def pump() -> None:
        while not ws.closed:
            event = await subscription.get()
            await ws.send_json(event)

    sender: Optional[asyncio.Task] = None
    try:
        await ws.prepare(request)
        sender = asyncio.create_task(pump())
        async for msg in ws:
            if msg.type == WSMsgType.ERROR:
                logger.warning("Websocket for %s closed with %s", session_id, ws.exception())
    finally:
        if sender is not None:
            sender.cancel()
            await asyncio.gather(sender, return_exceptions=True)
        hub.unsubscribe(subscription)
        logger.info("Client disconnected: %s", session_id)
    return ws


def create_app(config: InsightConfig, hub: Optional[SubscriberHub] = None) -> web.Application:
    app = web.Application(middlewares=[error_middleware])
    app[CONFIG_KEY] = config
    app[HUB_KEY] = hub or SubscriberHub()

    async def engine_ctx(app: web.Application) -> AsyncIterator[None]:
        async with Engine(config) as engine:
            app[ENGINE_KEY] = engine
            yield
            for job in list(app[HUB_KEY].jobs.values()):
                job.cancel()
                await job.wait()

    app.cleanup_ctx.append(engine_ctx)
    app.router.add_post("/api/sitemap/fetch", fetch_sitemap)
    app.router.add_get("/ws", websocket_handler)
    return app


def run_server(config: InsightConfig, host: Optional[str] = None, port: Optional[int] = None) -> None:
    host = host or config.host
    port = port if port is not None else config.port
    logger.info("Server is running on %s:%s", host, port)
    web.run_app(create_app(config), host=host, port=port, print=None)
