"""Unit tests for the Order aggregate."""

from datetime import timedelta

import pytest

from orderflow.domain.exceptions import (
    InvalidTransitionError,
    InventoryInvariantViolation,
    ValidationError,
)
from orderflow.domain.model.order import (
    MAX_LINE_ITEMS,
    Order,
    OrderLineItem,
    OrderStatus,
    StockState,
)
from orderflow.domain.model.value_objects import Money, PaymentMethod, Quantity
from tests.fakes import ADDRESS, ALICE, T0


def _line(product_id="1", qty=3, price="15.00"):
    return OrderLineItem(product_id, f"Product {product_id}", Quantity(qty), Money.of(price))


def _order(items=None, **kwargs):
    return Order.create(
        customer=ALICE,
        items=items or [_line()],
        shipping_address=ADDRESS,
        payment_method=PaymentMethod.CREDIT_CARD,
        order_number="ORD-TEST",
        now=T0,
        **kwargs,
    )


class TestOrderCreation:

    def test_new_order_is_pending_and_reserved(self):
        order = _order()
        assert order.status == OrderStatus.PENDING_PAYMENT
        assert order.stock_state == StockState.RESERVED
        assert order.user_id == "u-alice"

    def test_total_is_sum_of_line_totals(self):
        order = _order([_line("1", 3, "15.00"), _line("2", 2, "0.99")])
        assert order.total_amount == Money.of("46.98")

    def test_expiry_is_creation_plus_window(self):
        assert _order().expires_at == T0 + timedelta(minutes=15)
        assert _order(reservation_window=timedelta(minutes=1)).expires_at == T0 + timedelta(minutes=1)

    def test_empty_order_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            Order.create(ALICE, [], ADDRESS, PaymentMethod.PAYPAL, "ORD-X", T0)

    def test_too_many_lines_rejected(self):
        lines = [_line(str(i)) for i in range(MAX_LINE_ITEMS + 1)]
        with pytest.raises(ValidationError, match="Maximum"):
            _order(lines)

    def test_long_notes_rejected(self):
        with pytest.raises(ValidationError, match="Notes cannot exceed"):
            _order(notes="x" * 501)


class TestOrderImmutability:

    @pytest.mark.parametrize(
        "field, value",
        [
            ("items", ()),
            ("total_amount", Money.zero()),
            ("expires_at", T0),
            ("order_number", "ORD-OTHER"),
        ],
    )
    def test_frozen_fields_cannot_be_reassigned(self, field, value):
        order = _order()
        with pytest.raises(AttributeError, match="cannot change after checkout"):
            setattr(order, field, value)

    def test_status_can_change(self):
        order = _order()
        order.transition_to(OrderStatus.PAID, T0)
        assert order.status == OrderStatus.PAID


class TestOrderTransitions:

    @pytest.mark.parametrize(
        "path",
        [
            [OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED],
            [OrderStatus.PAID, OrderStatus.CANCELLED],
            [OrderStatus.CANCELLED],
        ],
    )
    def test_allowed_paths(self, path):
        order = _order()
        for status in path:
            order.transition_to(status, T0)
        assert order.status == path[-1]

    def test_transition_stamps_updated_at(self):
        order = _order()
        order.transition_to(OrderStatus.CANCELLED, T0 + timedelta(minutes=3))
        assert order.updated_at == T0 + timedelta(minutes=3)

    @pytest.mark.parametrize(
        "start, target",
        [
            ([], OrderStatus.SHIPPED),
            ([], OrderStatus.DELIVERED),
            ([OrderStatus.CANCELLED], OrderStatus.PAID),
            ([OrderStatus.PAID, OrderStatus.SHIPPED], OrderStatus.CANCELLED),
        ],
    )
    def test_illegal_transition_reports_both_states(self, start, target):
        order = _order()
        for status in start:
            order.transition_to(status, T0)
        current = order.status
        with pytest.raises(InvalidTransitionError) as exc_info:
            order.transition_to(target, T0)
        assert exc_info.value.current == current
        assert exc_info.value.requested == target
        assert "Invalid status transition" in str(exc_info.value)


class TestOrderExpiry:

    def test_not_expired_at_the_boundary(self):
        order = _order()
        assert not order.is_expired(order.expires_at)

    def test_expired_after_the_boundary(self):
        order = _order()
        assert order.is_expired(order.expires_at + timedelta(seconds=1))

    def test_only_pending_orders_expire(self):
        order = _order()
        order.transition_to(OrderStatus.PAID, T0)
        assert not order.is_expired(T0 + timedelta(days=1))

    def test_is_expired_has_no_side_effect(self):
        order = _order()
        order.is_expired(T0 + timedelta(days=1))
        assert order.status == OrderStatus.PENDING_PAYMENT


class TestEnsurePayable:

    def test_pending_is_payable(self):
        _order().ensure_payable()

    @pytest.mark.parametrize(
        "path, message",
        [
            ([OrderStatus.PAID], "already been paid"),
            ([OrderStatus.CANCELLED], "has been cancelled"),
            ([OrderStatus.PAID, OrderStatus.SHIPPED], "already been shipped"),
        ],
    )
    def test_status_specific_message(self, path, message):
        order = _order()
        for status in path:
            order.transition_to(status, T0)
        with pytest.raises(InvalidTransitionError, match=message):
            order.ensure_payable()


class TestStockState:

    def test_settles_once(self):
        order = _order()
        order.mark_stock_committed()
        assert not order.holds_reservation
        with pytest.raises(InventoryInvariantViolation, match="already committed"):
            order.mark_stock_released()
