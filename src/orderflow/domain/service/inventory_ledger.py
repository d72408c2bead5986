"""Domain service: Inventory Ledger.

The only writer of ``stock`` / ``reserved_stock``. Each operation is one
atomic read-modify-write on one product (``ProductRepository.update_stock``),
so concurrent reserve / commit / release calls on the same product are
linearizable and ``available_stock`` can never go negative.

Guarding against committing or releasing the same reservation twice is
the caller's job (order status and stock-state gating), not the ledger's.
"""

from __future__ import annotations

import structlog

from orderflow.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    InventoryInvariantViolation,
    ProductUnavailableError,
)
from orderflow.domain.model.inventory import StockLevel
from orderflow.domain.model.order import Order
from orderflow.domain.model.product import Product
from orderflow.domain.repository.product_repository import ProductRepository, StockChange

logger = structlog.get_logger(__name__)


class InventoryLedger:

    def __init__(self, products: ProductRepository) -> None:
        self._products = products

    def reserve(self, product_id: str, quantity: int) -> Product:
        """Hold ``quantity`` units for a pending order.

        Availability is checked inside the atomic update, not against an
        earlier read, so two checkouts racing for the last unit cannot both win.
        """

        def change(product: Product) -> StockLevel:
            if not product.is_active:
                raise ProductUnavailableError(
                    f"Product {product.name} is no longer available",
                    product_id=product.id,
                )
            level = product.stock_level
            if not level.can_reserve(quantity):
                raise InsufficientStockError(
                    f"Insufficient stock for {product.name}. "
                    f"Available: {level.available_stock}",
                    product_id=product.id,
                )
            return level.reserve(quantity)

        product = self._update(product_id, change, "reserve", quantity)
        logger.debug(
            "Stock reserved",
            product_id=product_id,
            quantity=quantity,
            reserved_stock=product.reserved_stock,
        )
        return product

    def commit(self, product_id: str, quantity: int) -> Product:
        """Convert reserved units into a permanent deduction."""
        product = self._update(
            product_id, lambda p: p.stock_level.commit(quantity), "commit", quantity
        )
        logger.debug(
            "Reservation committed",
            product_id=product_id,
            quantity=quantity,
            stock=product.stock,
        )
        return product

    def release(self, product_id: str, quantity: int) -> Product:
        """Give reserved units back without deducting stock.

        Releasing more than is reserved is never clamped: it raises
        InventoryInvariantViolation.
        """
        product = self._update(
            product_id, lambda p: p.stock_level.release(quantity), "release", quantity
        )
        logger.debug(
            "Reservation released",
            product_id=product_id,
            quantity=quantity,
            reserved_stock=product.reserved_stock,
        )
        return product

    def set_stock(self, product_id: str, stock: int) -> Product:
        """Restock or write off; cannot drop below what is reserved."""
        product = self._update(
            product_id, lambda p: p.stock_level.with_stock(stock), "set_stock", stock
        )
        logger.info("Stock level set", product_id=product_id, stock=stock)
        return product

    # --- Whole-order helpers --------------------------------------------------

    def commit_order(self, order: Order) -> None:
        for item in order.items:
            self.commit(item.product_id, item.quantity.value)

    def release_order(self, order: Order) -> None:
        for item in order.items:
            self.release(item.product_id, item.quantity.value)

    # --- Internal helpers -----------------------------------------------------

    def _update(
        self, product_id: str, change: StockChange, operation: str, quantity: int
    ) -> Product:
        try:
            product = self._products.update_stock(product_id, change)
        except InventoryInvariantViolation:
            logger.error(
                "Inventory invariant violation",
                operation=operation,
                product_id=product_id,
                quantity=quantity,
                exc_info=True,
            )
            raise
        if product is None:
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")
        return product
