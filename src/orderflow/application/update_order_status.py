"""Application service: administrative order status update.

Moves an order along the transition table. Moves that end a
reservation also settle it in the ledger:

- PENDING_PAYMENT -> CANCELLED releases the reserved stock;
- PENDING_PAYMENT -> PAID commits it (manual payment);
- PAID -> CANCELLED has no inventory effect (refunds are out of scope).

SHIPPED and DELIVERED enqueue a customer notification.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from orderflow.application.dto import OrderDTO, order_to_dto
from orderflow.domain.exceptions import (
    EntityNotFoundError,
    InvalidTransitionError,
    ValidationError,
)
from orderflow.domain.model.order import OrderStatus, utc_now
from orderflow.domain.repository.unit_of_work import UnitOfWork
from orderflow.domain.service.notifications import (
    NotificationSink,
    NotificationType,
    OrderNotification,
    enqueue_best_effort,
)
from orderflow.domain.service.order_lifecycle import OrderLifecycleService

logger = structlog.get_logger(__name__)

_NOTIFY_ON = {
    OrderStatus.SHIPPED: NotificationType.ORDER_SHIPPED,
    OrderStatus.DELIVERED: NotificationType.ORDER_DELIVERED,
}


def parse_status(raw: str | OrderStatus) -> OrderStatus:
    if isinstance(raw, OrderStatus):
        return raw
    try:
        return OrderStatus(raw.strip().upper())
    except ValueError:
        valid = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Unknown order status '{raw}'. Valid: {valid}") from None


class UpdateOrderStatusHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        notifier: NotificationSink,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = uow
        self._notifier = notifier
        self._clock = clock

    def handle(self, order_id: int, status: str | OrderStatus) -> OrderDTO:
        target = parse_status(status)
        now = self._clock()

        with self._uow.transaction() as tx:
            order = tx.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            if not order.can_transition_to(target):
                raise InvalidTransitionError(
                    f"Invalid status transition from {order.status.value} to {target.value}",
                    current=order.status,
                    requested=target,
                )

            lifecycle = OrderLifecycleService(tx)
            pending = order.status is OrderStatus.PENDING_PAYMENT
            if pending and target is OrderStatus.CANCELLED:
                updated = lifecycle.cancel_pending(order_id, now)
            elif pending and target is OrderStatus.PAID:
                updated = lifecycle.mark_paid(order_id, now)
            else:
                updated = lifecycle.transition(order_id, order.status, target, now)

            if updated is None:
                raise InvalidTransitionError(
                    f"Order #{order_id} changed status concurrently; retry",
                    current=order.status,
                    requested=target,
                )

        logger.info(
            "Order status updated",
            order_id=order_id,
            from_status=order.status.value,
            to_status=target.value,
        )
        kind = _NOTIFY_ON.get(target)
        if kind is not None:
            enqueue_best_effort(self._notifier, OrderNotification.for_order(kind, updated))
        return order_to_dto(updated)
