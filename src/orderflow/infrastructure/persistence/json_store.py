"""JSON-file-backed store.

The whole store lives in one file so a commit is a single atomic rename.
A thread lock plus a ``filelock`` lock on a sibling file serialize access
across threads and processes.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterator

from filelock import FileLock

from orderflow.domain.model.cart import Cart, CartItem
from orderflow.domain.model.order import Order, OrderLineItem, OrderStatus, StockState
from orderflow.domain.model.payment import Payment, PaymentStatus
from orderflow.domain.model.product import Product
from orderflow.domain.model.value_objects import (
    Customer,
    Money,
    PaymentMethod,
    Quantity,
    ShippingAddress,
)
from orderflow.domain.repository.unit_of_work import ConsistencyMode, Transaction, UnitOfWork
from orderflow.infrastructure.persistence.state import (
    BoundState,
    StateAccess,
    StoreState,
    bind_transaction,
)

STORE_FILE = "orderflow.json"
LOCK_FILE = "orderflow.json.lock"


class JsonUnitOfWork(UnitOfWork):

    def __init__(
        self,
        data_dir: Path,
        mode: ConsistencyMode = ConsistencyMode.TRANSACTIONAL,
        lock_timeout: float = 30,
    ) -> None:
        self._file_path = data_dir / STORE_FILE
        self._mode = mode
        self._thread_lock = threading.RLock()
        self._ensure_file()
        self._file_lock = FileLock(str(data_dir / LOCK_FILE), timeout=lock_timeout)

    @property
    def mode(self) -> ConsistencyMode:
        return self._mode

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        if self._mode is ConsistencyMode.TRANSACTIONAL:
            with self._locked():
                working = self._load()
                yield bind_transaction(BoundState(working))
                self._persist(working)
            return

        tx = bind_transaction(_FileState(self))
        try:
            yield tx
        except BaseException:
            tx.compensate()
            raise

    # --- Locking --------------------------------------------------------------

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._thread_lock, self._file_lock:
            yield

    # --- File helpers ---------------------------------------------------------

    def _load(self) -> StoreState:
        raw = json.loads(self._file_path.read_text(encoding="utf-8"))
        return state_from_raw(raw)

    def _persist(self, state: StoreState) -> None:
        payload = json.dumps(state_to_raw(state), indent=2) + "\n"
        fd, tmp_name = tempfile.mkstemp(
            dir=self._file_path.parent, prefix=".orderflow-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._persist(StoreState())


class _FileState(StateAccess):
    """Per-call access: lock, load, and for writes persist before unlocking."""

    def __init__(self, uow: JsonUnitOfWork) -> None:
        self._uow = uow

    @contextmanager
    def reading(self) -> Iterator[StoreState]:
        with self._uow._locked():
            yield self._uow._load()

    @contextmanager
    def writing(self) -> Iterator[StoreState]:
        with self._uow._locked():
            state = self._uow._load()
            yield state
            self._uow._persist(state)


# --- Serialization ------------------------------------------------------------


def state_to_raw(state: StoreState) -> dict:
    return {
        "products": [_product_to_raw(p) for p in state.products.values()],
        "orders": [_order_to_raw(o) for o in state.orders.values()],
        "payments": [_payment_to_raw(p) for p in state.payments.values()],
        "carts": [_cart_to_raw(c) for c in state.carts.values()],
    }


def state_from_raw(raw: dict) -> StoreState:
    state = StoreState()
    for item in raw.get("products", []):
        product = _product_to_domain(item)
        state.products[product.id] = product
    for item in raw.get("orders", []):
        order = _order_to_domain(item)
        state.orders[order.id] = order  # type: ignore[index]
    for item in raw.get("payments", []):
        payment = _payment_to_domain(item)
        state.payments[payment.id] = payment
    for item in raw.get("carts", []):
        cart = _cart_to_domain(item)
        state.carts[cart.user_id] = cart
    return state


def _product_to_raw(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "price": str(product.price.amount),
        "stock": product.stock,
        "reserved_stock": product.reserved_stock,
        "is_active": product.is_active,
    }


def _product_to_domain(raw: dict) -> Product:
    return Product(
        id=raw["id"],
        name=raw["name"],
        price=Money(Decimal(raw["price"])),
        stock=raw["stock"],
        reserved_stock=raw.get("reserved_stock", 0),
        is_active=raw.get("is_active", True),
    )


def _order_to_raw(order: Order) -> dict:
    address = order.shipping_address
    return {
        "id": order.id,
        "order_number": order.order_number,
        "customer": {
            "user_id": order.customer.user_id,
            "email": order.customer.email,
            "name": order.customer.name,
        },
        "items": [
            {
                "product_id": item.product_id,
                "product_name": item.product_name,
                "quantity": item.quantity.value,
                "price_at_purchase": str(item.price_at_purchase.amount),
            }
            for item in order.items
        ],
        "total_amount": str(order.total_amount.amount),
        "shipping_address": {
            "street": address.street,
            "city": address.city,
            "state": address.state,
            "zip_code": address.zip_code,
            "country": address.country,
        },
        "payment_method": order.payment_method.value,
        "expires_at": order.expires_at.isoformat(),
        "status": order.status.value,
        "stock_state": order.stock_state.value,
        "notes": order.notes,
        "created_at": order.created_at.isoformat(),
        "updated_at": order.updated_at.isoformat(),
    }


def _order_to_domain(raw: dict) -> Order:
    items = tuple(
        OrderLineItem(
            product_id=i["product_id"],
            product_name=i["product_name"],
            quantity=Quantity(i["quantity"]),
            price_at_purchase=Money(Decimal(i["price_at_purchase"])),
        )
        for i in raw["items"]
    )
    return Order(
        id=raw["id"],
        order_number=raw["order_number"],
        customer=Customer(**raw["customer"]),
        items=items,
        total_amount=Money(Decimal(raw["total_amount"])),
        shipping_address=ShippingAddress(**raw["shipping_address"]),
        payment_method=PaymentMethod(raw["payment_method"]),
        expires_at=datetime.fromisoformat(raw["expires_at"]),
        status=OrderStatus(raw["status"]),
        stock_state=StockState(raw.get("stock_state", StockState.RESERVED.value)),
        notes=raw.get("notes"),
        created_at=datetime.fromisoformat(raw["created_at"]),
        updated_at=datetime.fromisoformat(raw["updated_at"]),
    )


def _payment_to_raw(payment: Payment) -> dict:
    return {
        "id": payment.id,
        "order_id": payment.order_id,
        "transaction_id": payment.transaction_id,
        "amount": str(payment.amount.amount),
        "status": payment.status.value,
        "payment_method": payment.payment_method.value,
        "failure_reason": payment.failure_reason,
        "created_at": payment.created_at.isoformat(),
    }


def _payment_to_domain(raw: dict) -> Payment:
    return Payment(
        id=raw["id"],
        order_id=raw["order_id"],
        transaction_id=raw["transaction_id"],
        amount=Money(Decimal(raw["amount"])),
        status=PaymentStatus(raw["status"]),
        payment_method=PaymentMethod(raw["payment_method"]),
        failure_reason=raw.get("failure_reason"),
        created_at=datetime.fromisoformat(raw["created_at"]),
    )


def _cart_to_raw(cart: Cart) -> dict:
    return {
        "user_id": cart.user_id,
        "items": [{"product_id": i.product_id, "quantity": i.quantity} for i in cart.items],
    }


def _cart_to_domain(raw: dict) -> Cart:
    return Cart(
        user_id=raw["user_id"],
        items=[CartItem(product_id=i["product_id"], quantity=i["quantity"]) for i in raw["items"]],
    )
