"""Application service: Show Order use case (query)."""

from __future__ import annotations

from orderflow.application.dto import OrderDTO, order_to_dto
from orderflow.domain.exceptions import EntityNotFoundError, ForbiddenError
from orderflow.domain.repository.unit_of_work import UnitOfWork


class ShowOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int, user_id: str) -> OrderDTO:
        """Return the order with its payment attempts, for its owner only."""
        with self._uow.transaction() as tx:
            order = tx.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            if order.user_id != user_id:
                raise ForbiddenError("Unauthorized access to order")
            payments = tx.payments.list_for_order(order_id)
        return order_to_dto(order, payments)
