"""Application service: Show Cart use case (query)."""

from __future__ import annotations

from orderflow.domain.model.cart import Cart
from orderflow.domain.repository.unit_of_work import UnitOfWork


class ShowCartHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user_id: str) -> Cart:
        with self._uow.transaction() as tx:
            return tx.carts.get_for_user(user_id) or Cart(user_id=user_id)
