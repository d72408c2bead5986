"""Application service: Add Product use case."""

from __future__ import annotations

from orderflow.domain.exceptions import DuplicateKeyError, ValidationError
from orderflow.domain.model.product import Product
from orderflow.domain.model.value_objects import Money
from orderflow.domain.repository.unit_of_work import UnitOfWork


class AddProductHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        name: str,
        price: str,
        stock: int = 0,
        product_id: str | None = None,
    ) -> Product:
        """Add a new product to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")

        with self._uow.transaction() as tx:
            all_products = tx.products.list_all()
            if any(p.name.lower() == name.strip().lower() for p in all_products):
                raise ValidationError(f"Product '{name.strip()}' already exists")

            if product_id is None:
                # Auto-assign the next numeric ID
                numeric = [int(p.id) for p in all_products if p.id.isdigit()]
                product_id = str(max(numeric, default=0) + 1)
            elif tx.products.get_by_id(product_id) is not None:
                raise DuplicateKeyError(f"Product with ID '{product_id}' already exists")

            product = Product.create(product_id, name, Money.of(price), stock)
            tx.products.save(product)
        return product
