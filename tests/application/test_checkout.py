"""Integration tests for the Checkout use case."""

from datetime import timedelta

import pytest

from orderflow.application.checkout import CheckoutHandler
from orderflow.domain.exceptions import (
    DuplicateKeyError,
    InsufficientStockError,
    ProductUnavailableError,
    ValidationError,
)
from orderflow.domain.model.cart import Cart
from orderflow.domain.model.order import OrderStatus, StockState
from orderflow.domain.model.value_objects import Money, PaymentMethod
from orderflow.domain.repository.unit_of_work import ConsistencyMode
from orderflow.infrastructure.persistence.state import StateCartRepository
from tests.fakes import (
    ADDRESS,
    ALICE,
    BOB,
    BOTH_MODES,
    T0,
    FrozenClock,
    fill_cart,
    make_product,
    make_uow,
    stock_of,
)


def _catalog():
    return [
        make_product("1", "Widget", "15.00", stock=50),
        make_product("2", "Gadget", "25.00", stock=5),
    ]


def _numbers(*values):
    it = iter(values)
    return lambda: next(it)


@pytest.mark.parametrize("mode", BOTH_MODES)
class TestCheckoutHappyPath:

    def test_reserves_stock_and_creates_pending_order(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {"1": 3})

        result = CheckoutHandler(uow, clock=FrozenClock()).handle(ALICE, ADDRESS)

        assert result.order.status == "PENDING_PAYMENT"
        assert result.order.total_amount == "$45.00"
        assert result.expires_at == T0 + timedelta(minutes=15)
        assert stock_of(uow, "1") == (50, 3)
        product = uow.snapshot().products["1"]
        assert product.available_stock == 47

    def test_clears_the_cart(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {"1": 3, "2": 1})

        CheckoutHandler(uow).handle(ALICE, ADDRESS)

        assert uow.snapshot().carts[ALICE.user_id].is_empty

    def test_price_snapshot_survives_catalog_change(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {"1": 2})
        result = CheckoutHandler(uow).handle(ALICE, ADDRESS)

        with uow.transaction() as tx:
            product = tx.products.get_by_id("1")
            product.update_price(Money.of("99.00"))
            tx.products.save(product)

        order = uow.snapshot().orders[result.order.id]
        assert order.items[0].price_at_purchase == Money.of("15.00")
        assert order.total_amount == Money.of("30.00")

    def test_captures_customer_payment_method_and_notes(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {"1": 1})

        result = CheckoutHandler(uow).handle(
            ALICE, ADDRESS, PaymentMethod.PAYPAL, notes="Leave at the door"
        )

        order = uow.snapshot().orders[result.order.id]
        assert order.customer == ALICE
        assert order.payment_method == PaymentMethod.PAYPAL
        assert order.notes == "Leave at the door"
        assert order.stock_state == StockState.RESERVED

    def test_configured_reservation_window(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {"1": 1})

        result = CheckoutHandler(
            uow, clock=FrozenClock(), reservation_window=timedelta(minutes=5)
        ).handle(ALICE, ADDRESS)

        assert result.expires_at == T0 + timedelta(minutes=5)


@pytest.mark.parametrize("mode", BOTH_MODES)
class TestCheckoutRejections:

    def test_missing_cart_rejected(self, mode):
        uow = make_uow(_catalog(), mode)
        with pytest.raises(ValidationError, match="Cart is empty"):
            CheckoutHandler(uow).handle(ALICE, ADDRESS)

    def test_empty_cart_rejected(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {})
        with pytest.raises(ValidationError, match="Cart is empty"):
            CheckoutHandler(uow).handle(ALICE, ADDRESS)

    def test_one_short_line_aborts_everything(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {"1": 3, "2": 6})

        with pytest.raises(InsufficientStockError, match="Gadget. Available: 5") as exc_info:
            CheckoutHandler(uow).handle(ALICE, ADDRESS)

        assert exc_info.value.product_id == "2"
        assert stock_of(uow, "1") == (50, 0)
        assert stock_of(uow, "2") == (5, 0)
        state = uow.snapshot()
        assert state.orders == {}
        assert state.carts[ALICE.user_id].total_items == 9

    def test_inactive_product_rejected(self, mode):
        products = _catalog()
        products[1].deactivate()
        uow = make_uow(products, mode)
        fill_cart(uow, ALICE.user_id, {"1": 1, "2": 1})

        with pytest.raises(ProductUnavailableError, match="Gadget is no longer available"):
            CheckoutHandler(uow).handle(ALICE, ADDRESS)
        assert stock_of(uow, "1") == (50, 0)

    def test_removed_product_rejected(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {"404": 1})

        with pytest.raises(ProductUnavailableError, match="no longer available"):
            CheckoutHandler(uow).handle(ALICE, ADDRESS)


@pytest.mark.parametrize("mode", BOTH_MODES)
class TestCheckoutOrderNumbers:

    def test_collision_is_retried_without_leaking_stock(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {"1": 3})
        CheckoutHandler(uow, order_numbers=_numbers("ORD-DUP")).handle(ALICE, ADDRESS)

        fill_cart(uow, BOB.user_id, {"1": 2})
        result = CheckoutHandler(
            uow, order_numbers=_numbers("ORD-DUP", "ORD-NEW")
        ).handle(BOB, ADDRESS)

        assert result.order.order_number == "ORD-NEW"
        assert stock_of(uow, "1") == (50, 5)

    def test_gives_up_after_three_attempts(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {"1": 3})
        CheckoutHandler(uow, order_numbers=_numbers("ORD-DUP")).handle(ALICE, ADDRESS)

        fill_cart(uow, BOB.user_id, {"1": 2})
        with pytest.raises(DuplicateKeyError):
            CheckoutHandler(
                uow, order_numbers=_numbers("ORD-DUP", "ORD-DUP", "ORD-DUP")
            ).handle(BOB, ADDRESS)

        assert stock_of(uow, "1") == (50, 3)
        assert uow.snapshot().carts[BOB.user_id].total_items == 2


class TestCheckoutFailureAfterOrderStored:

    def _fail_cart_clear(self, monkeypatch):
        def boom(self, cart):
            raise RuntimeError("cart service down")

        monkeypatch.setattr(StateCartRepository, "clear_if_unchanged", boom)

    def test_transactional_store_discards_everything(self, monkeypatch):
        uow = make_uow(_catalog())
        fill_cart(uow, ALICE.user_id, {"1": 3})
        self._fail_cart_clear(monkeypatch)

        with pytest.raises(RuntimeError):
            CheckoutHandler(uow).handle(ALICE, ADDRESS)

        assert stock_of(uow, "1") == (50, 0)
        assert uow.snapshot().orders == {}

    def test_compare_and_swap_store_compensates(self, monkeypatch):
        uow = make_uow(_catalog(), ConsistencyMode.COMPARE_AND_SWAP)
        fill_cart(uow, ALICE.user_id, {"1": 3})
        self._fail_cart_clear(monkeypatch)

        with pytest.raises(RuntimeError):
            CheckoutHandler(uow).handle(ALICE, ADDRESS)

        assert stock_of(uow, "1") == (50, 0)
        [order] = uow.snapshot().orders.values()
        assert order.status == OrderStatus.CANCELLED
        assert order.stock_state == StockState.RELEASED


class TestCheckoutConsumesCartOnce:
    """The cart is cleared only if nobody touched it while checking out."""

    def _meddle_then_number(self, action):
        def numbers():
            action()
            return "ORD-1"

        return numbers

    def test_cart_edited_during_checkout_is_refused(self):
        uow = make_uow(_catalog(), ConsistencyMode.COMPARE_AND_SWAP)
        fill_cart(uow, ALICE.user_id, {"1": 3})
        numbers = self._meddle_then_number(
            lambda: fill_cart(uow, ALICE.user_id, {"2": 1})
        )

        with pytest.raises(ValidationError, match="Cart changed"):
            CheckoutHandler(uow, order_numbers=numbers).handle(ALICE, ADDRESS)

        assert stock_of(uow, "1") == (50, 0)
        assert stock_of(uow, "2") == (5, 0)
        assert uow.snapshot().carts[ALICE.user_id].total_items == 4
        [order] = uow.snapshot().orders.values()
        assert order.status == OrderStatus.CANCELLED
        assert order.stock_state == StockState.RELEASED

    def test_cart_checked_out_elsewhere_is_refused(self):
        uow = make_uow(_catalog(), ConsistencyMode.COMPARE_AND_SWAP)
        fill_cart(uow, ALICE.user_id, {"1": 3})

        def empty_cart():
            with uow.transaction() as tx:
                tx.carts.save(Cart(user_id=ALICE.user_id))

        numbers = self._meddle_then_number(empty_cart)

        with pytest.raises(ValidationError, match="Cart is empty"):
            CheckoutHandler(uow, order_numbers=numbers).handle(ALICE, ADDRESS)

        assert stock_of(uow, "1") == (50, 0)


@pytest.mark.parametrize("mode", BOTH_MODES)
class TestClearIfUnchanged:

    def test_clears_matching_cart(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {"1": 3})
        with uow.transaction() as tx:
            cart = tx.carts.get_for_user(ALICE.user_id)
            assert tx.carts.clear_if_unchanged(cart) is True
        assert uow.snapshot().carts[ALICE.user_id].is_empty

    def test_second_clear_of_same_read_fails(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {"1": 3})
        with uow.transaction() as tx:
            cart = tx.carts.get_for_user(ALICE.user_id)
            tx.carts.clear_if_unchanged(cart)
            assert tx.carts.clear_if_unchanged(cart) is False

    def test_changed_cart_is_left_alone(self, mode):
        uow = make_uow(_catalog(), mode)
        fill_cart(uow, ALICE.user_id, {"1": 3})
        with uow.transaction() as tx:
            stale = tx.carts.get_for_user(ALICE.user_id)
        fill_cart(uow, ALICE.user_id, {"1": 1})
        with uow.transaction() as tx:
            assert tx.carts.clear_if_unchanged(stale) is False
        assert uow.snapshot().carts[ALICE.user_id].total_items == 4

    def test_missing_cart(self, mode):
        uow = make_uow(_catalog(), mode)
        with uow.transaction() as tx:
            assert tx.carts.clear_if_unchanged(Cart(user_id=BOB.user_id)) is False
