"""Application service: Set Inventory use case."""

from __future__ import annotations

from orderflow.application.dto import InventoryLineDTO, inventory_line
from orderflow.domain.repository.unit_of_work import UnitOfWork
from orderflow.domain.service.inventory_ledger import InventoryLedger


class SetInventoryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, product_id: str, quantity: int) -> InventoryLineDTO:
        """Set the on-hand stock of a product; reservations are kept."""
        with self._uow.transaction() as tx:
            product = InventoryLedger(tx.products).set_stock(product_id, quantity)
        return inventory_line(product)
