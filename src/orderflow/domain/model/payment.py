"""Payment attempt records.

Attempts are append-only: each call to Pay produces a new record and
past records are never modified.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.order import utc_now
from orderflow.domain.model.value_objects import Money, PaymentMethod

DECLINED_REASON = "Payment gateway declined transaction"


class PaymentStatus(Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PENDING = "PENDING"


@dataclass(frozen=True)
class Payment:
    id: str
    order_id: int
    transaction_id: str
    amount: Money
    status: PaymentStatus
    payment_method: PaymentMethod
    failure_reason: str | None = None
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if self.status is PaymentStatus.FAILED and not self.failure_reason:
            raise ValidationError("A failed payment must record a failure reason")
        if self.status is not PaymentStatus.FAILED and self.failure_reason:
            raise ValidationError("Only failed payments carry a failure reason")

    @staticmethod
    def succeeded(
        payment_id: str,
        order_id: int,
        transaction_id: str,
        amount: Money,
        payment_method: PaymentMethod,
        now: datetime,
    ) -> Payment:
        return Payment(
            id=payment_id,
            order_id=order_id,
            transaction_id=transaction_id,
            amount=amount,
            status=PaymentStatus.SUCCESS,
            payment_method=payment_method,
            created_at=now,
        )

    @staticmethod
    def failed(
        payment_id: str,
        order_id: int,
        transaction_id: str,
        amount: Money,
        payment_method: PaymentMethod,
        now: datetime,
        reason: str = DECLINED_REASON,
    ) -> Payment:
        return Payment(
            id=payment_id,
            order_id=order_id,
            transaction_id=transaction_id,
            amount=amount,
            status=PaymentStatus.FAILED,
            payment_method=payment_method,
            failure_reason=reason,
            created_at=now,
        )
