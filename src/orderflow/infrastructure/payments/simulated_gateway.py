"""Stochastic stand-in for a real payment gateway.

Approves a fixed share of charges regardless of amount. Pass a seeded
``random.Random`` for reproducible runs.
"""

from __future__ import annotations

import random

import structlog

from orderflow.domain.model.payment import DECLINED_REASON
from orderflow.domain.model.value_objects import Money, PaymentMethod
from orderflow.domain.service.payment_gateway import ChargeResult, PaymentGateway

logger = structlog.get_logger(__name__)

DEFAULT_SUCCESS_RATE = 0.9


class SimulatedGateway(PaymentGateway):

    def __init__(
        self,
        success_rate: float = DEFAULT_SUCCESS_RATE,
        rng: random.Random | None = None,
    ) -> None:
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError(f"success_rate must be within [0, 1], got {success_rate}")
        self._success_rate = success_rate
        self._rng = rng or random.Random()

    def charge(self, amount: Money, payment_method: PaymentMethod, reference: str) -> ChargeResult:
        approved = self._rng.random() < self._success_rate
        logger.debug(
            "Simulated charge",
            reference=reference,
            amount=str(amount),
            payment_method=payment_method.value,
            approved=approved,
        )
        if approved:
            return ChargeResult(success=True)
        return ChargeResult(success=False, failure_reason=DECLINED_REASON)
