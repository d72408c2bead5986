"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, in-memory) live in the
infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from orderflow.domain.model.inventory import StockLevel
from orderflow.domain.model.product import Product

StockChange = Callable[[Product], StockLevel]


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist catalog fields.

        For an existing product the stored ``stock`` / ``reserved_stock``
        are kept; those change only through ``update_stock``.
        """

    @abstractmethod
    def update_stock(self, product_id: str, change: StockChange) -> Product | None:
        """Atomically read-modify-write one product's stock pair.

        ``change`` receives the current product and returns its new
        StockLevel, or raises to abort. No other stock update on the same
        product can interleave. Returns the updated product, or None if it
        does not exist.
        """
