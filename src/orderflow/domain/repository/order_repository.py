"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable

from orderflow.domain.model.order import Order, OrderStatus, StockState


class OrderRepository(ABC):

    @abstractmethod
    def add(self, order: Order) -> Order:
        """Persist a new order, assigning its ID.

        Raises DuplicateKeyError if the order number is already taken.
        """

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Order | None:
        """Return an order by its order number, or None."""

    @abstractmethod
    def list_for_user(self, user_id: str, status: OrderStatus | None = None) -> list[Order]:
        """Return a user's orders, newest first."""

    @abstractmethod
    def list_expired(self, now: datetime) -> list[Order]:
        """Return PENDING_PAYMENT orders whose ``expires_at`` is before ``now``."""

    @abstractmethod
    def list_by_stock_state(self, stock_state: StockState) -> list[Order]:
        """Return every order whose reservation is in the given state."""

    @abstractmethod
    def update_where(
        self,
        order_id: int,
        mutate: Callable[[Order], None],
        status: OrderStatus | None = None,
        stock_state: StockState | None = None,
    ) -> Order | None:
        """Conditionally update one order.

        Applies ``mutate`` and stores the result only if the stored order
        still has the given ``status`` and/or ``stock_state``. Returns the
        updated order, or None if it is missing or no longer matches.
        """
