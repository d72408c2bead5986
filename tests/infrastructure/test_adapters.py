"""Tests for the payment simulator, notification queue and logging setup."""

import logging
import random

import pytest
import structlog

from orderflow.domain.model.order import Order, OrderLineItem
from orderflow.domain.model.payment import DECLINED_REASON
from orderflow.domain.model.value_objects import Money, PaymentMethod, Quantity
from orderflow.domain.service.notifications import (
    NotificationType,
    OrderNotification,
    enqueue_best_effort,
)
from orderflow.infrastructure.logging import configure_logging, default_log_level
from orderflow.infrastructure.notifications.queue import InMemoryNotificationQueue
from orderflow.infrastructure.payments.simulated_gateway import SimulatedGateway
from tests.fakes import ADDRESS, ALICE, T0, FailingNotificationSink


def _notification():
    order = Order.create(
        customer=ALICE,
        items=[OrderLineItem("1", "Widget", Quantity(1), Money.of("15.00"))],
        shipping_address=ADDRESS,
        payment_method=PaymentMethod.CREDIT_CARD,
        order_number="ORD-1",
        now=T0,
    )
    order.id = 1
    return OrderNotification.for_order(NotificationType.ORDER_CONFIRMATION, order)


class TestSimulatedGateway:

    def test_always_approves_at_rate_one(self):
        gateway = SimulatedGateway(1.0)
        assert all(
            gateway.charge(Money.of("1"), PaymentMethod.PAYPAL, "ORD-1").success
            for _ in range(20)
        )

    def test_always_declines_at_rate_zero(self):
        result = SimulatedGateway(0.0).charge(Money.of("1"), PaymentMethod.PAYPAL, "ORD-1")
        assert not result.success
        assert result.failure_reason == DECLINED_REASON

    def test_seeded_runs_are_reproducible(self):
        def run():
            gateway = SimulatedGateway(0.5, rng=random.Random(7))
            return [
                gateway.charge(Money.of("1"), PaymentMethod.PAYPAL, "ORD-1").success
                for _ in range(10)
            ]

        assert run() == run()

    def test_rate_out_of_range(self):
        with pytest.raises(ValueError):
            SimulatedGateway(1.1)


class TestNotificationQueue:

    def test_enqueue_and_drain(self):
        queue = InMemoryNotificationQueue()
        note = _notification()

        assert enqueue_best_effort(queue, note) is True
        assert queue.pending() == 1
        assert queue.drain() == [note]
        assert queue.pending() == 0

    def test_notification_carries_order_contact(self):
        note = _notification()
        assert (note.recipient, note.name, note.order_number) == (
            "alice@example.com", "Alice", "ORD-1"
        )
        assert note.amount == Money.of("15.00")

    def test_best_effort_swallows_sink_failure(self):
        assert enqueue_best_effort(FailingNotificationSink(), _notification()) is False


class TestLogging:

    def test_level_follows_environment(self):
        assert default_log_level("production") == "INFO"
        assert default_log_level("development") == "DEBUG"
        assert default_log_level("test") == "WARNING"
        assert default_log_level("anything-else") == "INFO"

    def test_configure_sets_root_level(self):
        configure_logging("test")
        assert logging.getLogger().level == logging.WARNING
        configure_logging("production", "ERROR")
        assert logging.getLogger().level == logging.ERROR
        structlog.get_logger("x").info("ignored")
