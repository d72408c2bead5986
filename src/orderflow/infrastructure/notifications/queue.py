"""In-process notification queue.

Stands in for the job queue the mail service consumes. Delivery is
outside this system; the queue only holds jobs until drained.
"""

from __future__ import annotations

import threading
from collections import deque

import structlog

from orderflow.domain.service.notifications import NotificationSink, OrderNotification

logger = structlog.get_logger(__name__)


class InMemoryNotificationQueue(NotificationSink):

    def __init__(self, maxlen: int | None = None) -> None:
        self._jobs: deque[OrderNotification] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def enqueue(self, notification: OrderNotification) -> None:
        with self._lock:
            self._jobs.append(notification)
        logger.info(
            "Notification queued",
            notification_type=notification.type.value,
            order_number=notification.order_number,
            recipient=notification.recipient,
        )

    def pending(self) -> int:
        with self._lock:
            return len(self._jobs)

    def drain(self) -> list[OrderNotification]:
        with self._lock:
            jobs = list(self._jobs)
            self._jobs.clear()
        return jobs
