# File: site_insight/session.py
"""site_insight.session: per-session cancellation context for background metrics jobs."""

from __future__ import annotations

import asyncio
import uuid
from typing import Optional, Set

from site_insight.logger import logger


class JobSession:
    """Owns the background tasks started for one client session.

    Cancellation is cooperative: :meth:`cancel` only sets a token that the
    metrics engine checks before each attempt and during every wait.
    """

    def __init__(self, session_id: Optional[str] = None) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self._cancelled = asyncio.Event()
        self._tasks: Set[asyncio.Task] = set()

    def __repr__(self) -> str:
        return f"<JobSession id={self.session_id} tasks={len(self._tasks)} cancelled={self.cancelled}>"

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        if not self._cancelled.is_set():
            logger.info("Cancelling %d job(s) for session %s", len(self._tasks), self.session_id)
            self._cancelled.set()

    def track(self, task: asyncio.Task) -> asyncio.Task:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def active(self) -> int:
        return len(self._tasks)

    async def sleep(self, delay: float) -> bool:
        """Wait *delay* seconds; return False early if the session is cancelled."""
        if self.cancelled:
            return False
        if delay <= 0:
            return True
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False

    async def wait(self) -> None:
        """Wait until every tracked task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
