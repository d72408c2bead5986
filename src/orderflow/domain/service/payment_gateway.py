"""Payment gateway port (abstract interface).

The simulator in infrastructure implements it; a real gateway would too,
without changing application code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from orderflow.domain.model.value_objects import Money, PaymentMethod


@dataclass(frozen=True)
class ChargeResult:
    """Result of a charge attempt."""

    success: bool
    failure_reason: str | None = None


class PaymentGateway(ABC):

    @abstractmethod
    def charge(self, amount: Money, payment_method: PaymentMethod, reference: str) -> ChargeResult:
        """Attempt to charge ``amount`` for the order identified by ``reference``."""
