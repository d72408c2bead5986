"""StockLevel value: the ``(stock, reserved_stock)`` pair of one product.

Every ledger operation is expressed as a pure transition from one
StockLevel to the next, so the same arithmetic serves both an atomic
transaction and a compare-and-swap update.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderflow.domain.exceptions import InventoryInvariantViolation, ValidationError


@dataclass(frozen=True)
class StockLevel:
    """Invariants:
    - ``0 <= reserved_stock <= stock``
    - ``available_stock`` is derived on read, never stored
    """

    stock: int
    reserved_stock: int = 0

    def __post_init__(self) -> None:
        if self.stock < 0 or self.reserved_stock < 0:
            raise InventoryInvariantViolation(
                f"Stock levels cannot be negative (stock={self.stock}, "
                f"reserved={self.reserved_stock})"
            )
        if self.reserved_stock > self.stock:
            raise InventoryInvariantViolation(
                f"Reserved stock {self.reserved_stock} exceeds stock {self.stock}"
            )

    @property
    def available_stock(self) -> int:
        return self.stock - self.reserved_stock

    def can_reserve(self, quantity: int) -> bool:
        return 0 < quantity <= self.available_stock

    def reserve(self, quantity: int) -> StockLevel:
        _check_positive(quantity, "Reservation")
        if quantity > self.available_stock:
            raise InventoryInvariantViolation(
                f"Cannot reserve {quantity} with only {self.available_stock} available"
            )
        return StockLevel(self.stock, self.reserved_stock + quantity)

    def commit(self, quantity: int) -> StockLevel:
        """Turn ``quantity`` reserved units into a permanent deduction."""
        _check_positive(quantity, "Commit")
        if quantity > self.reserved_stock:
            raise InventoryInvariantViolation(
                f"Cannot commit {quantity} with only {self.reserved_stock} reserved"
            )
        return StockLevel(self.stock - quantity, self.reserved_stock - quantity)

    def release(self, quantity: int) -> StockLevel:
        _check_positive(quantity, "Release")
        if quantity > self.reserved_stock:
            raise InventoryInvariantViolation(
                f"Cannot release {quantity} with only {self.reserved_stock} reserved"
            )
        return StockLevel(self.stock, self.reserved_stock - quantity)

    def with_stock(self, stock: int) -> StockLevel:
        """Restock or write off, never below what is currently reserved."""
        if stock < self.reserved_stock:
            raise ValidationError(
                f"Stock cannot drop below the {self.reserved_stock} units "
                f"currently reserved"
            )
        return StockLevel(stock, self.reserved_stock)


def _check_positive(quantity: int, action: str) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError(f"{action} quantity must be a positive integer")
