"""Product aggregate.

Products live independently of orders. Catalog fields (name, price,
active flag) are edited freely; the stock pair is written only through
the InventoryLedger.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.inventory import StockLevel
from orderflow.domain.model.value_objects import Money

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100


@dataclass
class Product:
    """A product in the catalog together with its inventory record.

    ``is_active`` gates new reservations only; reservations taken before
    deactivation stay valid and may still be committed or released.
    """

    id: str
    name: str
    price: Money
    stock: int = 0
    reserved_stock: int = 0
    is_active: bool = True

    @staticmethod
    def create(product_id: str, name: str, price: Money, stock: int = 0) -> Product:
        name = (name or "").strip()
        if not MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH:
            raise ValidationError(
                f"Product name must be {MIN_NAME_LENGTH}-{MAX_NAME_LENGTH} characters"
            )
        if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
            raise ValidationError("Stock cannot be negative")
        return Product(id=product_id, name=name, price=price, stock=stock)

    @property
    def stock_level(self) -> StockLevel:
        return StockLevel(self.stock, self.reserved_stock)

    @property
    def available_stock(self) -> int:
        return self.stock_level.available_stock

    def apply_stock_level(self, level: StockLevel) -> None:
        """Store a new stock pair. Only the ledger's repositories call this."""
        self.stock = level.stock
        self.reserved_stock = level.reserved_stock

    def update_price(self, new_price: Money) -> None:
        """Existing orders are unaffected: they captured a price snapshot."""
        self.price = new_price

    def deactivate(self) -> None:
        self.is_active = False

    def activate(self) -> None:
        self.is_active = True
