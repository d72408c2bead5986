"""Unit of Work: the transaction boundary every core operation runs in.

How much a transaction guarantees depends on the configured
ConsistencyMode:

- TRANSACTIONAL: all repository calls inside one ``transaction()`` form a
  single atomic unit; an exception discards every write.
- COMPARE_AND_SWAP: each repository call is atomic on its own. Writes made
  before a failure stay; the compensations registered on the transaction
  run (newest first) to undo them.

Service code is written once against this interface and registers
compensations unconditionally; the transactional store ignores them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from enum import Enum
from typing import Callable

import structlog

from orderflow.domain.repository.cart_repository import CartRepository
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.repository.payment_repository import PaymentRepository
from orderflow.domain.repository.product_repository import ProductRepository

logger = structlog.get_logger(__name__)


class ConsistencyMode(Enum):
    TRANSACTIONAL = "transactional"
    COMPARE_AND_SWAP = "compare_and_swap"


class Transaction:
    """Repositories bound to one unit, plus its compensation log."""

    def __init__(
        self,
        products: ProductRepository,
        orders: OrderRepository,
        payments: PaymentRepository,
        carts: CartRepository,
    ) -> None:
        self.products = products
        self.orders = orders
        self.payments = payments
        self.carts = carts
        self._compensations: list[tuple[str, Callable[[], None]]] = []

    def add_compensation(self, description: str, action: Callable[[], None]) -> None:
        self._compensations.append((description, action))

    def compensate(self) -> None:
        """Run registered compensations newest first.

        A failing compensation is logged and the rest still run; the
        caller re-raises the error that aborted the unit.
        """
        while self._compensations:
            description, action = self._compensations.pop()
            try:
                action()
            except Exception:
                logger.error(
                    "Compensation failed", compensation=description, exc_info=True
                )


class UnitOfWork(ABC):

    @property
    @abstractmethod
    def mode(self) -> ConsistencyMode:
        """The consistency guarantee this store provides."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[Transaction]:
        """Open a unit of work; commits on normal exit, aborts on exception."""
