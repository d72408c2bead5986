"""Application service: List Orders use case (query)."""

from __future__ import annotations

from orderflow.application.dto import OrderDTO, order_to_dto
from orderflow.application.update_order_status import parse_status
from orderflow.domain.model.order import OrderStatus
from orderflow.domain.repository.unit_of_work import UnitOfWork


class ListOrdersHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user_id: str, status: str | OrderStatus | None = None) -> list[OrderDTO]:
        """A user's orders, newest first, optionally filtered by status."""
        wanted = parse_status(status) if status is not None else None
        with self._uow.transaction() as tx:
            orders = tx.orders.list_for_user(user_id, wanted)
        return [order_to_dto(o) for o in orders]
