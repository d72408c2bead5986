"""Application service: Checkout use case.

Turns the caller's cart into a PENDING_PAYMENT order holding a stock
reservation for every line, as one all-or-nothing unit:

1. Check every line (product active, enough available stock); the first
   failing line aborts the whole checkout, naming the product.
2. Freeze name and price per line and compute the total.
3. Create the order with a fresh order number and its expiry.
4. Reserve stock per line (re-checked atomically by the ledger).
5. Clear the cart, provided it is still the one read in step 1. A
   second checkout racing over the same cart fails here and gives its
   reservations back, so a cart turns into at most one order.

Under compare-and-swap storage each reservation registers a release
compensation and the stored order an "abandon" compensation, so a
failure at any step leaves no reservation and no live order behind.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from functools import partial
from typing import Callable

import structlog

from orderflow.application.dto import CheckoutResult, order_to_dto
from orderflow.domain.exceptions import (
    DuplicateKeyError,
    InsufficientStockError,
    ProductUnavailableError,
    ValidationError,
)
from orderflow.domain.model.identifiers import IdGenerator, new_order_number
from orderflow.domain.model.order import (
    RESERVATION_WINDOW,
    Order,
    OrderLineItem,
    OrderStatus,
    utc_now,
)
from orderflow.domain.model.value_objects import (
    Customer,
    PaymentMethod,
    Quantity,
    ShippingAddress,
)
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.repository.unit_of_work import Transaction, UnitOfWork
from orderflow.domain.service.inventory_ledger import InventoryLedger

logger = structlog.get_logger(__name__)

MAX_ORDER_NUMBER_ATTEMPTS = 3


class CheckoutHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
        reservation_window: timedelta = RESERVATION_WINDOW,
        order_numbers: IdGenerator = new_order_number,
    ) -> None:
        self._uow = uow
        self._clock = clock
        self._reservation_window = reservation_window
        self._order_numbers = order_numbers

    def handle(
        self,
        customer: Customer,
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD,
        notes: str | None = None,
    ) -> CheckoutResult:
        attempt = 1
        while True:
            try:
                order = self._checkout(customer, shipping_address, payment_method, notes)
                break
            except DuplicateKeyError:
                if attempt == MAX_ORDER_NUMBER_ATTEMPTS:
                    raise
                logger.warning("Order number collision, retrying", attempt=attempt)
                attempt += 1

        logger.info(
            "Order created",
            order_id=order.id,
            order_number=order.order_number,
            user_id=customer.user_id,
            total=str(order.total_amount),
            expires_at=order.expires_at.isoformat(),
        )
        return CheckoutResult(order=order_to_dto(order), expires_at=order.expires_at)

    def _checkout(
        self,
        customer: Customer,
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod,
        notes: str | None,
    ) -> Order:
        now = self._clock()
        with self._uow.transaction() as tx:
            cart = tx.carts.get_for_user(customer.user_id)
            if cart is None or cart.is_empty:
                raise ValidationError("Cart is empty")

            lines = [self._price_line(tx, item.product_id, item.quantity) for item in cart.items]

            order = Order.create(
                customer=customer,
                items=lines,
                shipping_address=shipping_address,
                payment_method=payment_method,
                order_number=self._order_numbers(),
                now=now,
                reservation_window=self._reservation_window,
                notes=notes,
            )

            ledger = InventoryLedger(tx.products)
            for line in order.items:
                qty = line.quantity.value
                ledger.reserve(line.product_id, qty)
                tx.add_compensation(
                    f"release {qty} of {line.product_id}",
                    partial(ledger.release, line.product_id, qty),
                )

            tx.orders.add(order)
            tx.add_compensation(
                f"abandon order {order.order_number}",
                partial(_abandon, tx.orders, order.id, now),  # type: ignore[arg-type]
            )

            # Only one checkout may consume a given cart.
            if not tx.carts.clear_if_unchanged(cart):
                current = tx.carts.get_for_user(customer.user_id)
                if current is None or current.is_empty:
                    raise ValidationError("Cart is empty")
                raise ValidationError("Cart changed during checkout. Please try again.")
        return order

    @staticmethod
    def _price_line(tx: Transaction, product_id: str, quantity: int) -> OrderLineItem:
        """Check one cart line and capture its price snapshot."""
        product = tx.products.get_by_id(product_id)
        if product is None:
            raise ProductUnavailableError(
                f"Product {product_id} is no longer available", product_id=product_id
            )
        if not product.is_active:
            raise ProductUnavailableError(
                f"Product {product.name} is no longer available", product_id=product.id
            )
        if product.available_stock < quantity:
            raise InsufficientStockError(
                f"Insufficient stock for {product.name}. "
                f"Available: {product.available_stock}",
                product_id=product.id,
            )
        return OrderLineItem(
            product_id=product.id,
            product_name=product.name,
            quantity=Quantity(quantity),
            price_at_purchase=product.price,  # <-- price snapshot
        )


def _abandon(orders: OrderRepository, order_id: int, now: datetime) -> None:
    """Cancel an order whose checkout failed after it was stored.

    The reservation itself is undone by the per-line release compensations.
    """

    def mutate(order: Order) -> None:
        order.transition_to(OrderStatus.CANCELLED, now)
        order.mark_stock_released()

    orders.update_where(order_id, mutate, status=OrderStatus.PENDING_PAYMENT)
