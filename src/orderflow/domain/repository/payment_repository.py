"""Abstract repository for payment attempts (append-only)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderflow.domain.model.payment import Payment


class PaymentRepository(ABC):

    @abstractmethod
    def add(self, payment: Payment) -> None:
        """Record an attempt. Raises DuplicateKeyError on a reused transaction id."""

    @abstractmethod
    def list_for_order(self, order_id: int) -> list[Payment]:
        """Return every attempt for an order, oldest first."""
