"""Abstract repository for the cart collaborator."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderflow.domain.model.cart import Cart


class CartRepository(ABC):

    @abstractmethod
    def get_for_user(self, user_id: str) -> Cart | None:
        """Return the user's cart, or None if they never had one."""

    @abstractmethod
    def save(self, cart: Cart) -> None:
        """Persist a new or updated cart."""

    @abstractmethod
    def clear_if_unchanged(self, cart: Cart) -> bool:
        """Empty the stored cart only if its items still equal ``cart.items``.

        Returns False, leaving the store alone, if the cart is gone or was
        changed (or already checked out) since ``cart`` was read.
        """
