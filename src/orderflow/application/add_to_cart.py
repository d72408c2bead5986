"""Application service: Add To Cart use case.

Carts are owned elsewhere in a full deployment; this is the minimum
needed to stage a checkout from the command line.
"""

from __future__ import annotations

from orderflow.domain.exceptions import EntityNotFoundError, ValidationError
from orderflow.domain.model.cart import Cart
from orderflow.domain.repository.unit_of_work import UnitOfWork


class AddToCartHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user_id: str, product_id: str, quantity: int) -> Cart:
        if not user_id:
            raise ValidationError("User ID is required")
        with self._uow.transaction() as tx:
            product = tx.products.get_by_id(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product with ID '{product_id}' not found")
            if not product.is_active:
                raise ValidationError(f"Product {product.name} is no longer available")

            cart = tx.carts.get_for_user(user_id) or Cart(user_id=user_id)
            cart.add_item(product_id, quantity)
            tx.carts.save(cart)
        return cart
