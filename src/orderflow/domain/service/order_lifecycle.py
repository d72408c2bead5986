"""Domain service: order lifecycle moves that also touch inventory.

Every status change goes through a conditional update
(``OrderRepository.update_where``) so that when the expiration sweep, a
lazy expiry check and a payment race for the same order, exactly one of
them wins; the losers get ``None`` back and leave stock alone.

Ordering within each move: status first, then the ledger, then the
order's ``stock_state`` marker. Under compare-and-swap storage a crash
between those writes leaves a non-pending order still marked RESERVED,
which reconciliation repairs.
"""

from __future__ import annotations

from datetime import datetime

import structlog

from orderflow.domain.exceptions import InventoryInvariantViolation
from orderflow.domain.model.order import Order, OrderStatus, StockState
from orderflow.domain.repository.unit_of_work import Transaction
from orderflow.domain.service.inventory_ledger import InventoryLedger

logger = structlog.get_logger(__name__)


class OrderLifecycleService:

    def __init__(self, tx: Transaction) -> None:
        self._tx = tx
        self._ledger = InventoryLedger(tx.products)

    @property
    def ledger(self) -> InventoryLedger:
        return self._ledger

    def cancel_pending(self, order_id: int, now: datetime) -> Order | None:
        """PENDING_PAYMENT -> CANCELLED and release the reservation.

        Returns None if the order is no longer pending (someone else won).
        """
        cancelled = self._tx.orders.update_where(
            order_id,
            lambda o: o.transition_to(OrderStatus.CANCELLED, now),
            status=OrderStatus.PENDING_PAYMENT,
        )
        if cancelled is None:
            return None
        cancelled = self.release_reservation(cancelled)
        logger.info(
            "Order cancelled",
            order_id=order_id,
            order_number=cancelled.order_number,
        )
        return cancelled

    def mark_paid(self, order_id: int, now: datetime) -> Order | None:
        """PENDING_PAYMENT -> PAID and commit the reservation."""
        paid = self._tx.orders.update_where(
            order_id,
            lambda o: o.transition_to(OrderStatus.PAID, now),
            status=OrderStatus.PENDING_PAYMENT,
        )
        if paid is None:
            return None
        return self.commit_reservation(paid)

    def transition(
        self,
        order_id: int,
        expected: OrderStatus,
        target: OrderStatus,
        now: datetime,
    ) -> Order | None:
        """A plain status move with no inventory effect."""
        return self._tx.orders.update_where(
            order_id, lambda o: o.transition_to(target, now), status=expected
        )

    def commit_reservation(self, order: Order) -> Order:
        if not order.holds_reservation:
            return order
        self._ledger.commit_order(order)
        return self._settle(order, committed=True)

    def release_reservation(self, order: Order) -> Order:
        if not order.holds_reservation:
            return order
        self._ledger.release_order(order)
        return self._settle(order, committed=False)

    def _settle(self, order: Order, committed: bool) -> Order:
        mark = Order.mark_stock_committed if committed else Order.mark_stock_released
        settled = self._tx.orders.update_where(
            order.id,  # type: ignore[arg-type]
            mark,
            stock_state=StockState.RESERVED,
        )
        if settled is None:
            logger.error(
                "Order stock state changed underneath a ledger update",
                order_id=order.id,
                order_number=order.order_number,
                committed=committed,
            )
            raise InventoryInvariantViolation(
                f"Order {order.order_number} reservation was settled concurrently"
            )
        return settled
