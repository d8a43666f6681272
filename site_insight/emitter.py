# File: site_insight/emitter.py
"""
Result emitter: pushes finished per-URL metrics to live subscribers.

Subscribers attach per session id (several per session, e.g. browser tabs).
There is no buffering: an event published while nobody listens is dropped.
When the last subscriber of a session leaves, the job bound to that session
is cancelled.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Protocol

from site_insight.logger import logger
from site_insight.session import JobSession

PAGESPEED_EVENT = "pagespeed_report"


class ResultEmitter(Protocol):
    async def publish(self, session_id: str, event: Dict[str, Any]) -> int:
        """Deliver *event* to the current subscribers of *session_id*; return delivery count."""
        ...


class Subscription:
    """Queue-backed handle of one subscriber."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue()
        self.closed = False

    async def get(self) -> Dict[str, Any]:
        return await self.queue.get()


class SubscriberHub:
    """In-process ResultEmitter tracking subscribers per session."""

    def __init__(self) -> None:
        self.subscribers: Dict[str, List[Subscription]] = {}
        self.jobs: Dict[str, JobSession] = {}

    def subscribe(self, session_id: str) -> Subscription:
        subscription = Subscription(session_id)
        self.subscribers.setdefault(session_id, []).append(subscription)
        logger.info(
            "Subscriber attached to %s. Total: %d", session_id, len(self.subscribers[session_id])
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.closed = True
        session_id = subscription.session_id
        remaining = self.subscribers.get(session_id, [])
        if subscription in remaining:
            remaining.remove(subscription)
        if remaining:
            return
        self.subscribers.pop(session_id, None)
        logger.info("Session %s has no more subscribers", session_id)
        job = self.jobs.pop(session_id, None)
        if job is not None:
            job.cancel()

    def session(self, session_id: str) -> JobSession:
        """Return the live job context of *session_id*, creating a fresh one if needed."""
        job = self.jobs.get(session_id)
        if job is None or job.cancelled:
            job = JobSession(session_id)
            self.jobs[session_id] = job
        return job

    def forget(self, job: JobSession) -> None:
        """Drop *job* once it has no running tasks and nobody listens to its session."""
        if job.active or self.subscribers.get(job.session_id):
            return
        if self.jobs.get(job.session_id) is job:
            del self.jobs[job.session_id]

    def subscriber_count(self, session_id: str) -> int:
        return len(self.subscribers.get(session_id, []))

    async def publish(self, session_id: str, event: Dict[str, Any]) -> int:
        targets = self.subscribers.get(session_id, [])
        if not targets:
            logger.debug("No subscribers for %s. Event dropped.", session_id)
            return 0
        for subscription in targets:
            subscription.queue.put_nowait(event)
        return len(targets)
