"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from orderflow.domain.model.order import Order
from orderflow.domain.model.payment import Payment
from orderflow.domain.model.product import Product


@dataclass(frozen=True)
class OrderLineItemDTO:
    product_id: str
    product_name: str
    quantity: int
    price_at_purchase: str  # formatted, e.g. "$15.00"
    line_total: str


@dataclass(frozen=True)
class PaymentDTO:
    id: str
    order_id: int
    transaction_id: str
    amount: str
    status: str
    payment_method: str
    failure_reason: str | None
    created_at: datetime


@dataclass(frozen=True)
class OrderDTO:
    id: int
    order_number: str
    user_id: str
    status: str
    items: list[OrderLineItemDTO]
    total_amount: str
    payment_method: str
    shipping_address: str
    notes: str | None
    expires_at: datetime
    created_at: datetime
    payments: list[PaymentDTO] = field(default_factory=list)


@dataclass(frozen=True)
class CheckoutResult:
    """Output of checkout: the pending order and when its hold lapses."""

    order: OrderDTO
    expires_at: datetime


@dataclass(frozen=True)
class SettlementResult:
    """Output of a successful payment."""

    order: OrderDTO
    payment: PaymentDTO


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    product_name: str
    price: str
    stock: int
    reserved: int
    available: int
    active: bool


# --- Mapping ------------------------------------------------------------------


def order_to_dto(order: Order, payments: list[Payment] | None = None) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        user_id=order.user_id,
        status=order.status.value,
        items=[
            OrderLineItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity.value,
                price_at_purchase=str(item.price_at_purchase),
                line_total=str(item.line_total),
            )
            for item in order.items
        ],
        total_amount=str(order.total_amount),
        payment_method=order.payment_method.value,
        shipping_address=str(order.shipping_address),
        notes=order.notes,
        expires_at=order.expires_at,
        created_at=order.created_at,
        payments=[payment_to_dto(p) for p in payments or []],
    )


def payment_to_dto(payment: Payment) -> PaymentDTO:
    return PaymentDTO(
        id=payment.id,
        order_id=payment.order_id,
        transaction_id=payment.transaction_id,
        amount=str(payment.amount),
        status=payment.status.value,
        payment_method=payment.payment_method.value,
        failure_reason=payment.failure_reason,
        created_at=payment.created_at,
    )


def inventory_line(product: Product) -> InventoryLineDTO:
    return InventoryLineDTO(
        product_id=product.id,
        product_name=product.name,
        price=str(product.price),
        stock=product.stock,
        reserved=product.reserved_stock,
        available=product.available_stock,
        active=product.is_active,
    )
