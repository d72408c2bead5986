"""Application service: inventory reconciliation and audit.

``handle()`` repairs drift left by an interrupted compare-and-swap
operation: an order that is no longer pending but still holds its
reservation gets it committed (PAID, SHIPPED, DELIVERED) or released
(CANCELLED). Orders touched within the grace period are left alone,
since their own operation may still be finishing.

``audit()`` only reports: products whose reserved stock is out of
bounds or differs from the sum held by reserving orders.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

import structlog

from orderflow.domain.model.order import OrderStatus, StockState, utc_now
from orderflow.domain.repository.unit_of_work import UnitOfWork
from orderflow.domain.service.order_lifecycle import OrderLifecycleService

logger = structlog.get_logger(__name__)

RECONCILE_GRACE = timedelta(minutes=5)

_COMMIT_ON = frozenset({OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED})


@dataclass(frozen=True)
class ReconciliationReport:
    committed: list[str] = field(default_factory=list)
    released: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def repaired(self) -> int:
        return len(self.committed) + len(self.released)


@dataclass(frozen=True)
class InventoryDiscrepancy:
    product_id: str
    stock: int
    reserved_stock: int
    expected_reserved: int
    problem: str


class ReconcileInventoryHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
        grace: timedelta = RECONCILE_GRACE,
    ) -> None:
        self._uow = uow
        self._clock = clock
        self._grace = grace

    def handle(self, now: datetime | None = None) -> ReconciliationReport:
        now = now or self._clock()
        cutoff = now - self._grace
        with self._uow.transaction() as tx:
            stranded = [
                o for o in tx.orders.list_by_stock_state(StockState.RESERVED)
                if o.status is not OrderStatus.PENDING_PAYMENT and o.updated_at <= cutoff
            ]

        report = ReconciliationReport()
        for order in stranded:
            try:
                with self._uow.transaction() as tx:
                    current = tx.orders.get_by_id(order.id)  # type: ignore[arg-type]
                    if current is None or not current.holds_reservation:
                        continue
                    lifecycle = OrderLifecycleService(tx)
                    if current.status in _COMMIT_ON:
                        lifecycle.commit_reservation(current)
                        report.committed.append(current.order_number)
                    elif current.status is OrderStatus.CANCELLED:
                        lifecycle.release_reservation(current)
                        report.released.append(current.order_number)
            except Exception:
                logger.error(
                    "Failed to reconcile order reservation",
                    order_id=order.id,
                    order_number=order.order_number,
                    exc_info=True,
                )
                report.failed.append(order.order_number)

        if stranded:
            logger.warning(
                "Reconciled stranded reservations",
                committed=len(report.committed),
                released=len(report.released),
                failed=len(report.failed),
            )
        return report

    def audit(self) -> list[InventoryDiscrepancy]:
        with self._uow.transaction() as tx:
            products = tx.products.list_all()
            holding = tx.orders.list_by_stock_state(StockState.RESERVED)

        expected: Counter[str] = Counter()
        for order in holding:
            for item in order.items:
                expected[item.product_id] += item.quantity.value

        discrepancies = []
        for product in products:
            want = expected.get(product.id, 0)
            if not 0 <= product.reserved_stock <= product.stock:
                problem = "reserved stock out of bounds"
            elif product.reserved_stock != want:
                problem = "reserved stock does not match reserving orders"
            else:
                continue
            discrepancies.append(
                InventoryDiscrepancy(
                    product_id=product.id,
                    stock=product.stock,
                    reserved_stock=product.reserved_stock,
                    expected_reserved=want,
                    problem=problem,
                )
            )

        for d in discrepancies:
            logger.warning(
                "Inventory discrepancy",
                product_id=d.product_id,
                reserved_stock=d.reserved_stock,
                expected_reserved=d.expected_reserved,
                problem=d.problem,
            )
        return discrepancies
