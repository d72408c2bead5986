"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from orderflow.application.dto import InventoryLineDTO, inventory_line
from orderflow.domain.repository.unit_of_work import UnitOfWork


class ShowInventoryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[InventoryLineDTO]:
        with self._uow.transaction() as tx:
            products = tx.products.list_all()
        return [inventory_line(p) for p in products]
