"""Tests for the catalog, cart and read-side use cases."""

import pytest

from orderflow.application.add_product import AddProductHandler
from orderflow.application.add_to_cart import AddToCartHandler
from orderflow.application.checkout import CheckoutHandler
from orderflow.application.list_orders import ListOrdersHandler
from orderflow.application.pay_order import PayOrderHandler
from orderflow.application.set_inventory import SetInventoryHandler
from orderflow.application.show_cart import ShowCartHandler
from orderflow.application.show_inventory import ShowInventoryHandler
from orderflow.application.show_order import ShowOrderHandler
from orderflow.domain.exceptions import (
    DuplicateKeyError,
    EntityNotFoundError,
    ForbiddenError,
    PaymentDeclinedError,
    ValidationError,
)
from tests.fakes import (
    ADDRESS,
    ALICE,
    BOB,
    FakeGateway,
    FrozenClock,
    RecordingNotificationSink,
    fill_cart,
    make_product,
    make_uow,
)


class TestAddProduct:

    def test_auto_assigns_ids(self):
        uow = make_uow([])
        handler = AddProductHandler(uow)

        first = handler.handle("Widget", "15.00", stock=10)
        second = handler.handle("Gadget", "25.00")

        assert (first.id, second.id) == ("1", "2")
        assert uow.snapshot().products["1"].stock == 10

    def test_duplicate_name_rejected(self):
        uow = make_uow()
        with pytest.raises(ValidationError, match="already exists"):
            AddProductHandler(uow).handle("widget", "1.00")

    def test_duplicate_id_rejected(self):
        uow = make_uow()
        with pytest.raises(DuplicateKeyError):
            AddProductHandler(uow).handle("Gizmo", "1.00", product_id="1")

    def test_bad_price_rejected(self):
        with pytest.raises(ValidationError, match="Invalid money amount"):
            AddProductHandler(make_uow([])).handle("Gizmo", "cheap")


class TestCart:

    def test_add_and_show(self):
        uow = make_uow()
        AddToCartHandler(uow).handle(ALICE.user_id, "1", 2)
        AddToCartHandler(uow).handle(ALICE.user_id, "1", 1)

        cart = ShowCartHandler(uow).handle(ALICE.user_id)

        assert cart.total_items == 3

    def test_unknown_product(self):
        with pytest.raises(EntityNotFoundError):
            AddToCartHandler(make_uow()).handle(ALICE.user_id, "9", 1)

    def test_show_missing_cart_is_empty(self):
        assert ShowCartHandler(make_uow()).handle("nobody").is_empty


class TestInventory:

    def test_show(self):
        uow = make_uow([make_product(stock=50, reserved=3)])

        [line] = ShowInventoryHandler(uow).handle()

        assert (line.stock, line.reserved, line.available) == (50, 3, 47)
        assert line.price == "$15.00"
        assert line.active

    def test_set_keeps_reservations(self):
        uow = make_uow([make_product(stock=50, reserved=3)])

        line = SetInventoryHandler(uow).handle("1", 10)

        assert (line.stock, line.reserved, line.available) == (10, 3, 7)

    def test_set_below_reserved_rejected(self):
        uow = make_uow([make_product(stock=50, reserved=3)])
        with pytest.raises(ValidationError, match="currently reserved"):
            SetInventoryHandler(uow).handle("1", 2)

    def test_set_unknown_product(self):
        with pytest.raises(EntityNotFoundError):
            SetInventoryHandler(make_uow()).handle("9", 2)


class TestShowAndListOrders:

    def _two_orders(self):
        clock = FrozenClock()
        uow = make_uow()
        fill_cart(uow, ALICE.user_id, {"1": 1})
        first = CheckoutHandler(uow, clock=clock).handle(ALICE, ADDRESS).order
        clock.advance(minutes=1)
        fill_cart(uow, ALICE.user_id, {"1": 2})
        second = CheckoutHandler(uow, clock=clock).handle(ALICE, ADDRESS).order
        return uow, clock, first, second

    def test_show_includes_payment_attempts(self):
        uow, clock, first, _ = self._two_orders()
        payer = PayOrderHandler(uow, FakeGateway([False, True]), RecordingNotificationSink(), clock=clock)
        with pytest.raises(PaymentDeclinedError):
            payer.handle(first.id, ALICE.user_id)
        payer.handle(first.id, ALICE.user_id)

        dto = ShowOrderHandler(uow).handle(first.id, ALICE.user_id)

        assert dto.status == "PAID"
        assert [p.status for p in dto.payments] == ["FAILED", "SUCCESS"]

    def test_show_is_owner_only(self):
        uow, _, first, _ = self._two_orders()
        with pytest.raises(ForbiddenError):
            ShowOrderHandler(uow).handle(first.id, BOB.user_id)

    def test_show_unknown(self):
        with pytest.raises(EntityNotFoundError):
            ShowOrderHandler(make_uow()).handle(1, ALICE.user_id)

    def test_list_newest_first(self):
        uow, _, first, second = self._two_orders()

        orders = ListOrdersHandler(uow).handle(ALICE.user_id)

        assert [o.id for o in orders] == [second.id, first.id]
        assert ListOrdersHandler(uow).handle(BOB.user_id) == []

    def test_list_filters_by_status(self):
        uow, clock, first, second = self._two_orders()
        PayOrderHandler(uow, FakeGateway(), RecordingNotificationSink(), clock=clock).handle(
            second.id, ALICE.user_id
        )

        paid = ListOrdersHandler(uow).handle(ALICE.user_id, "PAID")
        pending = ListOrdersHandler(uow).handle(ALICE.user_id, "pending_payment")

        assert [o.id for o in paid] == [second.id]
        assert [o.id for o in pending] == [first.id]
