"""Notification sink for quote events."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

QUOTE_MODIFIED = "quote.modified"


class EventSink(Protocol):
    def publish(self, event: str, quote_id: int) -> None: ...


class QueueEventSink:
    """Hands events to background jobs on the RQ queue."""

    def __init__(self, queue=None) -> None:
        self._queue = queue

    def publish(self, event: str, quote_id: int) -> None:
        from app.workers.jobs import EVENT_JOBS
        from app.workers.queue import get_queue

        handler = EVENT_JOBS.get(event)
        if handler is None:
            logger.debug("No job registered for %s", event)
            return
        queue = self._queue or get_queue()
        job = queue.enqueue(handler, quote_id)
        logger.info("Enqueued %s for quote %s as job %s", event, quote_id, job.get_id())
