"""Application service: cancel orders whose reservation window has lapsed.

Each expired order is cancelled in its own unit of work so one failure
never blocks the rest of the sweep. An order that was paid or cancelled
between listing and cancelling is skipped, not reported as a failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

import structlog

from orderflow.domain.model.order import utc_now
from orderflow.domain.repository.unit_of_work import UnitOfWork
from orderflow.domain.service.order_lifecycle import OrderLifecycleService

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SweepReport:
    examined: int = 0
    cancelled: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class ExpireOrdersHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, now: datetime | None = None) -> SweepReport:
        now = now or self._clock()
        with self._uow.transaction() as tx:
            expired = tx.orders.list_expired(now)

        report = SweepReport(examined=len(expired))
        for order in expired:
            try:
                with self._uow.transaction() as tx:
                    cancelled = OrderLifecycleService(tx).cancel_pending(order.id, now)  # type: ignore[arg-type]
            except Exception:
                logger.error(
                    "Failed to cancel expired order",
                    order_id=order.id,
                    order_number=order.order_number,
                    exc_info=True,
                )
                report.failed.append(order.order_number)
                continue

            if cancelled is None:
                report.skipped.append(order.order_number)
            else:
                report.cancelled.append(order.order_number)

        if expired:
            logger.info(
                "Expiration sweep finished",
                examined=report.examined,
                cancelled=len(report.cancelled),
                skipped=len(report.skipped),
                failed=len(report.failed),
            )
        return report
