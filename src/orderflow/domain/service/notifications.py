"""Notification sink port.

The core only enqueues; delivery, retries and backoff belong to the sink.
Enqueueing is best-effort and never fails the operation that triggered it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import structlog

from orderflow.domain.model.order import Order
from orderflow.domain.model.value_objects import Money

logger = structlog.get_logger(__name__)


class NotificationType(Enum):
    ORDER_CONFIRMATION = "ORDER_CONFIRMATION"
    ORDER_SHIPPED = "ORDER_SHIPPED"
    ORDER_DELIVERED = "ORDER_DELIVERED"


@dataclass(frozen=True)
class OrderNotification:
    type: NotificationType
    order_id: int
    recipient: str
    name: str
    order_number: str
    amount: Money

    @staticmethod
    def for_order(kind: NotificationType, order: Order) -> OrderNotification:
        return OrderNotification(
            type=kind,
            order_id=order.id,  # type: ignore[arg-type]
            recipient=order.customer.email,
            name=order.customer.name,
            order_number=order.order_number,
            amount=order.total_amount,
        )


class NotificationSink(ABC):

    @abstractmethod
    def enqueue(self, notification: OrderNotification) -> None:
        """Hand a notification over for delivery."""


def enqueue_best_effort(sink: NotificationSink, notification: OrderNotification) -> bool:
    """Enqueue, logging instead of raising if the sink fails."""
    try:
        sink.enqueue(notification)
    except Exception:
        logger.warning(
            "Failed to enqueue notification",
            notification_type=notification.type.value,
            order_number=notification.order_number,
            exc_info=True,
        )
        return False
    return True
