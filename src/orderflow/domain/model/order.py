"""Order aggregate: the core of the domain.

The Order owns its line items and its lifecycle. Items, total, expiry
and order number are frozen at checkout; afterwards only ``status``
(through the transition table) and ``stock_state`` (through the ledger
bookkeeping methods) change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from orderflow.domain.exceptions import (
    InvalidTransitionError,
    InventoryInvariantViolation,
    ValidationError,
)
from orderflow.domain.model.value_objects import (
    Customer,
    Money,
    PaymentMethod,
    Quantity,
    ShippingAddress,
)


class OrderStatus(Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class StockState(Enum):
    """What the ledger has done with the order's reservation."""

    RESERVED = "RESERVED"
    COMMITTED = "COMMITTED"
    RELEASED = "RELEASED"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING_PAYMENT: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

_UNPAYABLE_MESSAGES = {
    OrderStatus.PAID: "Order has already been paid",
    OrderStatus.CANCELLED: "Order has been cancelled",
    OrderStatus.SHIPPED: "Order has already been shipped",
    OrderStatus.DELIVERED: "Order has already been delivered",
}

# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
RESERVATION_WINDOW = timedelta(minutes=15)
MAX_LINE_ITEMS = 50
MAX_NOTES_LENGTH = 500

_IMMUTABLE_FIELDS = frozenset(
    {"order_number", "customer", "items", "total_amount", "expires_at", "created_at"}
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OrderLineItem:
    """A cart line frozen at checkout, with the price captured then."""

    product_id: str
    product_name: str
    quantity: Quantity
    price_at_purchase: Money

    @property
    def line_total(self) -> Money:
        return self.price_at_purchase * self.quantity.value


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use ``Order.create()`` for new orders. The ``__init__`` stays plain so
    repositories can reconstitute persisted orders without re-validating.
    """

    id: int | None
    order_number: str
    customer: Customer
    items: tuple[OrderLineItem, ...]
    total_amount: Money
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    expires_at: datetime
    status: OrderStatus = OrderStatus.PENDING_PAYMENT
    stock_state: StockState = StockState.RESERVED
    notes: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __setattr__(self, name: str, value: object) -> None:
        if name in _IMMUTABLE_FIELDS and name in self.__dict__:
            raise AttributeError(f"Order.{name} cannot change after checkout")
        super().__setattr__(name, value)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer: Customer,
        items: list[OrderLineItem],
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod,
        order_number: str,
        now: datetime,
        reservation_window: timedelta = RESERVATION_WINDOW,
        notes: str | None = None,
    ) -> Order:
        """Create a pending order whose reservation lapses after the window."""
        if not items:
            raise ValidationError("Order must contain at least one item")
        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")
        if not order_number:
            raise ValidationError("Order number is required")

        total = Money.zero()
        for item in items:
            total = total + item.line_total

        return Order(
            id=None,
            order_number=order_number,
            customer=customer,
            items=tuple(items),
            total_amount=total,
            shipping_address=shipping_address,
            payment_method=payment_method,
            expires_at=now + reservation_window,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

    # --- Queries --------------------------------------------------------------

    @property
    def user_id(self) -> str:
        return self.customer.user_id

    @property
    def holds_reservation(self) -> bool:
        return self.stock_state is StockState.RESERVED

    def is_expired(self, now: datetime) -> bool:
        """Pure check; callers decide whether to cancel."""
        return self.status is OrderStatus.PENDING_PAYMENT and now > self.expires_at

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    # --- State transitions ----------------------------------------------------

    def transition_to(self, target: OrderStatus, now: datetime | None = None) -> None:
        if not self.can_transition_to(target):
            raise InvalidTransitionError(
                f"Invalid status transition from {self.status.value} to {target.value}",
                current=self.status,
                requested=target,
            )
        self.status = target
        self.updated_at = now or utc_now()

    def ensure_payable(self) -> None:
        """Raise with a status-specific message unless awaiting payment."""
        if self.status is OrderStatus.PENDING_PAYMENT:
            return
        message = _UNPAYABLE_MESSAGES.get(
            self.status,
            f"Cannot process payment. Order status is: {self.status.value}",
        )
        raise InvalidTransitionError(
            message, current=self.status, requested=OrderStatus.PAID
        )

    def mark_stock_committed(self) -> None:
        self._settle_stock(StockState.COMMITTED)

    def mark_stock_released(self) -> None:
        self._settle_stock(StockState.RELEASED)

    def _settle_stock(self, target: StockState) -> None:
        if self.stock_state is not StockState.RESERVED:
            raise InventoryInvariantViolation(
                f"Order {self.order_number} reservation already "
                f"{self.stock_state.value.lower()}, cannot mark it {target.value.lower()}"
            )
        self.stock_state = target
