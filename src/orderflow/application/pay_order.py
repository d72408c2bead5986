"""Application service: Pay Order use case.

Settles a PENDING_PAYMENT order against the payment gateway:

- an order past its expiry is cancelled on the spot (its reservation
  released) and the caller gets OrderExpiredError;
- a declined charge is recorded as a FAILED attempt, the order stays
  pending and the caller gets PaymentDeclinedError;
- an approved charge moves the order to PAID, commits its reservation
  and records a SUCCESS attempt, then a confirmation is enqueued.

Outcomes that end in an error are still committed first: the
cancellation and the failed attempt must persist.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from orderflow.application.dto import SettlementResult, order_to_dto, payment_to_dto
from orderflow.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    ForbiddenError,
    InvalidTransitionError,
    OrderExpiredError,
    PaymentDeclinedError,
)
from orderflow.domain.model.identifiers import (
    IdGenerator,
    new_payment_id,
    new_transaction_id,
)
from orderflow.domain.model.order import Order, OrderStatus, utc_now
from orderflow.domain.model.payment import DECLINED_REASON, Payment
from orderflow.domain.repository.unit_of_work import Transaction, UnitOfWork
from orderflow.domain.service.notifications import (
    NotificationSink,
    NotificationType,
    OrderNotification,
    enqueue_best_effort,
)
from orderflow.domain.service.order_lifecycle import OrderLifecycleService
from orderflow.domain.service.payment_gateway import PaymentGateway

logger = structlog.get_logger(__name__)

SUPERSEDED_REASON = "Order changed state during settlement"


class PayOrderHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        gateway: PaymentGateway,
        notifier: NotificationSink,
        clock: Callable[[], datetime] = utc_now,
        payment_ids: IdGenerator = new_payment_id,
        transaction_ids: IdGenerator = new_transaction_id,
    ) -> None:
        self._uow = uow
        self._gateway = gateway
        self._notifier = notifier
        self._clock = clock
        self._payment_ids = payment_ids
        self._transaction_ids = transaction_ids

    def handle(self, order_id: int, user_id: str) -> SettlementResult:
        now = self._clock()
        # Raised once the unit has committed, so the outcome still persists.
        failure: DomainException | None = None

        with self._uow.transaction() as tx:
            order = tx.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            if order.user_id != user_id:
                raise ForbiddenError("Unauthorized access to order")

            lifecycle = OrderLifecycleService(tx)

            if order.is_expired(now):
                self._expire(tx, lifecycle, order, now)
                failure = OrderExpiredError("Order has expired and been cancelled")
            else:
                order.ensure_payable()
                charge = self._gateway.charge(
                    order.total_amount, order.payment_method, order.order_number
                )
                if not charge.success:
                    declined = self._record_failure(
                        tx, order, now, charge.failure_reason or DECLINED_REASON
                    )
                    logger.info(
                        "Payment declined",
                        order_id=order_id,
                        transaction_id=declined.transaction_id,
                    )
                    failure = PaymentDeclinedError(
                        "Payment failed. Please try again.",
                        payment=payment_to_dto(declined),
                    )
                else:
                    paid = lifecycle.mark_paid(order.id, now)  # type: ignore[arg-type]
                    if paid is None:
                        # The sweep or another payment got there first.
                        lost = self._record_failure(tx, order, now, SUPERSEDED_REASON)
                        logger.warning(
                            "Approved charge lost the race for its order",
                            order_id=order_id,
                            transaction_id=lost.transaction_id,
                        )
                        failure = InvalidTransitionError(
                            "Order is no longer awaiting payment",
                            requested=OrderStatus.PAID,
                        )
                    else:
                        order = paid
                        payment = Payment.succeeded(
                            payment_id=self._payment_ids(),
                            order_id=order.id,  # type: ignore[arg-type]
                            transaction_id=self._transaction_ids(),
                            amount=order.total_amount,
                            payment_method=order.payment_method,
                            now=now,
                        )
                        tx.payments.add(payment)

        if failure is not None:
            raise failure

        logger.info(
            "Payment processed",
            order_id=order.id,
            order_number=order.order_number,
            transaction_id=payment.transaction_id,
            amount=str(payment.amount),
        )
        enqueue_best_effort(
            self._notifier,
            OrderNotification.for_order(NotificationType.ORDER_CONFIRMATION, order),
        )
        return SettlementResult(order=order_to_dto(order), payment=payment_to_dto(payment))

    @staticmethod
    def _expire(
        tx: Transaction,
        lifecycle: OrderLifecycleService,
        order: Order,
        now: datetime,
    ) -> None:
        """Cancel an order found past its expiry while paying for it."""
        if lifecycle.cancel_pending(order.id, now) is not None:  # type: ignore[arg-type]
            logger.info("Expired order cancelled at payment", order_id=order.id)
            return
        # Lost to the sweep or a concurrent payment: report the real state.
        current = tx.orders.get_by_id(order.id)  # type: ignore[arg-type]
        if current is not None and current.status is not OrderStatus.CANCELLED:
            current.ensure_payable()

    def _record_failure(
        self, tx: Transaction, order: Order, now: datetime, reason: str
    ) -> Payment:
        payment = Payment.failed(
            payment_id=self._payment_ids(),
            order_id=order.id,  # type: ignore[arg-type]
            transaction_id=self._transaction_ids(),
            amount=order.total_amount,
            payment_method=order.payment_method,
            now=now,
            reason=reason,
        )
        tx.payments.add(payment)
        return payment
