"""Shopping cart, as far as checkout needs it.

Cart management proper belongs to another service; checkout reads the
lines and clears the cart once the order exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from orderflow.domain.exceptions import ValidationError

MAX_ITEM_QUANTITY = 100


@dataclass
class CartItem:
    product_id: str
    quantity: int


@dataclass
class Cart:
    user_id: str
    items: list[CartItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def add_item(self, product_id: str, quantity: int) -> None:
        """Add a product, merging with an existing line for it."""
        existing = next((i for i in self.items if i.product_id == product_id), None)
        new_quantity = quantity + (existing.quantity if existing else 0)
        if quantity < 1 or new_quantity > MAX_ITEM_QUANTITY:
            raise ValidationError(
                f"Quantity must be between 1 and {MAX_ITEM_QUANTITY}"
            )
        if existing:
            existing.quantity = new_quantity
        else:
            self.items.append(CartItem(product_id=product_id, quantity=quantity))

    def remove_item(self, product_id: str) -> None:
        self.items = [i for i in self.items if i.product_id != product_id]

    def clear(self) -> None:
        self.items = []
