"""Repositories over a StoreState snapshot.

Both stores keep their data as one StoreState: the in-memory store holds
it directly, the JSON store loads and saves it as a single file. What
differs is how the repositories reach it, which a StateAccess decides:

- inside a transactional unit the state is a private working copy
  already guarded by the store lock (``BoundState``);
- under compare-and-swap each call takes the store lock on its own.

Repositories hand out and accept copies, so nothing changes in the store
except through an explicit repository call.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterator

from orderflow.domain.exceptions import DuplicateKeyError
from orderflow.domain.model.cart import Cart
from orderflow.domain.model.order import Order, OrderStatus, StockState
from orderflow.domain.model.payment import Payment
from orderflow.domain.model.product import Product
from orderflow.domain.repository.cart_repository import CartRepository
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.repository.payment_repository import PaymentRepository
from orderflow.domain.repository.product_repository import ProductRepository, StockChange
from orderflow.domain.repository.unit_of_work import Transaction


@dataclass
class StoreState:
    products: dict[str, Product] = field(default_factory=dict)
    orders: dict[int, Order] = field(default_factory=dict)
    payments: dict[str, Payment] = field(default_factory=dict)
    carts: dict[str, Cart] = field(default_factory=dict)

    @property
    def next_order_id(self) -> int:
        return max(self.orders, default=0) + 1


class StateAccess(ABC):

    @abstractmethod
    def reading(self) -> AbstractContextManager[StoreState]:
        """Yield the state for a read."""

    @abstractmethod
    def writing(self) -> AbstractContextManager[StoreState]:
        """Yield the state for a read-modify-write; changes persist on exit."""


class BoundState(StateAccess):
    """Access to a state the enclosing transaction already holds."""

    def __init__(self, state: StoreState) -> None:
        self._state = state

    @contextmanager
    def reading(self) -> Iterator[StoreState]:
        yield self._state

    @contextmanager
    def writing(self) -> Iterator[StoreState]:
        yield self._state


def bind_transaction(access: StateAccess) -> Transaction:
    return Transaction(
        products=StateProductRepository(access),
        orders=StateOrderRepository(access),
        payments=StatePaymentRepository(access),
        carts=StateCartRepository(access),
    )


class StateProductRepository(ProductRepository):

    def __init__(self, access: StateAccess) -> None:
        self._access = access

    def get_by_id(self, product_id: str) -> Product | None:
        with self._access.reading() as state:
            return copy.deepcopy(state.products.get(product_id))

    def list_all(self) -> list[Product]:
        with self._access.reading() as state:
            return copy.deepcopy(list(state.products.values()))

    def save(self, product: Product) -> None:
        with self._access.writing() as state:
            stored = copy.deepcopy(product)
            existing = state.products.get(product.id)
            if existing is not None:
                stored.apply_stock_level(existing.stock_level)
            state.products[product.id] = stored

    def update_stock(self, product_id: str, change: StockChange) -> Product | None:
        with self._access.writing() as state:
            existing = state.products.get(product_id)
            if existing is None:
                return None
            level = change(copy.deepcopy(existing))
            updated = copy.deepcopy(existing)
            updated.apply_stock_level(level)
            state.products[product_id] = updated
            return copy.deepcopy(updated)


class StateOrderRepository(OrderRepository):

    def __init__(self, access: StateAccess) -> None:
        self._access = access

    def add(self, order: Order) -> Order:
        with self._access.writing() as state:
            if any(o.order_number == order.order_number for o in state.orders.values()):
                raise DuplicateKeyError(
                    f"Order number {order.order_number} already exists"
                )
            order.id = state.next_order_id
            state.orders[order.id] = copy.deepcopy(order)
            return order

    def get_by_id(self, order_id: int) -> Order | None:
        with self._access.reading() as state:
            return copy.deepcopy(state.orders.get(order_id))

    def get_by_order_number(self, order_number: str) -> Order | None:
        with self._access.reading() as state:
            for order in state.orders.values():
                if order.order_number == order_number:
                    return copy.deepcopy(order)
        return None

    def list_for_user(self, user_id: str, status: OrderStatus | None = None) -> list[Order]:
        with self._access.reading() as state:
            matches = [
                o for o in state.orders.values()
                if o.user_id == user_id and (status is None or o.status is status)
            ]
            matches.sort(key=lambda o: (o.created_at, o.id), reverse=True)
            return copy.deepcopy(matches)

    def list_expired(self, now: datetime) -> list[Order]:
        with self._access.reading() as state:
            return copy.deepcopy([
                o for o in state.orders.values()
                if o.status is OrderStatus.PENDING_PAYMENT and o.expires_at < now
            ])

    def list_by_stock_state(self, stock_state: StockState) -> list[Order]:
        with self._access.reading() as state:
            return copy.deepcopy([
                o for o in state.orders.values() if o.stock_state is stock_state
            ])

    def update_where(
        self,
        order_id: int,
        mutate: Callable[[Order], None],
        status: OrderStatus | None = None,
        stock_state: StockState | None = None,
    ) -> Order | None:
        with self._access.writing() as state:
            stored = state.orders.get(order_id)
            if stored is None:
                return None
            if status is not None and stored.status is not status:
                return None
            if stock_state is not None and stored.stock_state is not stock_state:
                return None
            updated = copy.deepcopy(stored)
            mutate(updated)
            state.orders[order_id] = updated
            return copy.deepcopy(updated)


class StatePaymentRepository(PaymentRepository):

    def __init__(self, access: StateAccess) -> None:
        self._access = access

    def add(self, payment: Payment) -> None:
        with self._access.writing() as state:
            if any(p.transaction_id == payment.transaction_id for p in state.payments.values()):
                raise DuplicateKeyError(
                    f"Transaction {payment.transaction_id} already recorded"
                )
            state.payments[payment.id] = payment

    def list_for_order(self, order_id: int) -> list[Payment]:
        with self._access.reading() as state:
            attempts = [p for p in state.payments.values() if p.order_id == order_id]
            return sorted(attempts, key=lambda p: p.created_at)


class StateCartRepository(CartRepository):

    def __init__(self, access: StateAccess) -> None:
        self._access = access

    def get_for_user(self, user_id: str) -> Cart | None:
        with self._access.reading() as state:
            return copy.deepcopy(state.carts.get(user_id))

    def save(self, cart: Cart) -> None:
        with self._access.writing() as state:
            state.carts[cart.user_id] = copy.deepcopy(cart)

    def clear_if_unchanged(self, cart: Cart) -> bool:
        with self._access.writing() as state:
            stored = state.carts.get(cart.user_id)
            if stored is None or stored.is_empty or stored.items != cart.items:
                return False
            state.carts[cart.user_id] = Cart(user_id=cart.user_id)
            return True
