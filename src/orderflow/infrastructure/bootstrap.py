"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from orderflow.application.add_product import AddProductHandler
from orderflow.application.add_to_cart import AddToCartHandler
from orderflow.application.checkout import CheckoutHandler
from orderflow.application.expire_orders import ExpireOrdersHandler
from orderflow.application.list_orders import ListOrdersHandler
from orderflow.application.pay_order import PayOrderHandler
from orderflow.application.reconcile_inventory import ReconcileInventoryHandler
from orderflow.application.set_inventory import SetInventoryHandler
from orderflow.application.show_cart import ShowCartHandler
from orderflow.application.show_inventory import ShowInventoryHandler
from orderflow.application.show_order import ShowOrderHandler
from orderflow.application.update_order_status import UpdateOrderStatusHandler
from orderflow.config import Settings
from orderflow.domain.repository.unit_of_work import ConsistencyMode, UnitOfWork
from orderflow.domain.service.notifications import NotificationSink
from orderflow.domain.service.payment_gateway import PaymentGateway
from orderflow.infrastructure.notifications.queue import InMemoryNotificationQueue
from orderflow.infrastructure.payments.simulated_gateway import SimulatedGateway
from orderflow.infrastructure.persistence.json_store import JsonUnitOfWork
from orderflow.infrastructure.persistence.memory_store import InMemoryUnitOfWork
from orderflow.infrastructure.scheduler import ExpirationSweeper


def unit_of_work(settings: Settings) -> UnitOfWork:
    if settings.storage == "memory":
        return InMemoryUnitOfWork(settings.consistency)
    return JsonUnitOfWork(settings.data_dir, settings.consistency)


@dataclass
class Container:
    """Adapters built once per process, with handler factories on top."""

    settings: Settings
    uow: UnitOfWork
    gateway: PaymentGateway
    notifier: NotificationSink = field(default_factory=InMemoryNotificationQueue)

    @staticmethod
    def from_settings(settings: Settings) -> Container:
        return Container(
            settings=settings,
            uow=unit_of_work(settings),
            gateway=SimulatedGateway(settings.payment_success_rate),
        )

    def add_product(self) -> AddProductHandler:
        return AddProductHandler(self.uow)

    def add_to_cart(self) -> AddToCartHandler:
        return AddToCartHandler(self.uow)

    def checkout(self) -> CheckoutHandler:
        return CheckoutHandler(
            self.uow, reservation_window=self.settings.reservation_window
        )

    def pay_order(self) -> PayOrderHandler:
        return PayOrderHandler(self.uow, self.gateway, self.notifier)

    def update_order_status(self) -> UpdateOrderStatusHandler:
        return UpdateOrderStatusHandler(self.uow, self.notifier)

    def show_order(self) -> ShowOrderHandler:
        return ShowOrderHandler(self.uow)

    def list_orders(self) -> ListOrdersHandler:
        return ListOrdersHandler(self.uow)

    def show_cart(self) -> ShowCartHandler:
        return ShowCartHandler(self.uow)

    def show_inventory(self) -> ShowInventoryHandler:
        return ShowInventoryHandler(self.uow)

    def set_inventory(self) -> SetInventoryHandler:
        return SetInventoryHandler(self.uow)

    def expire_orders(self) -> ExpireOrdersHandler:
        return ExpireOrdersHandler(self.uow)

    def reconcile_inventory(self) -> ReconcileInventoryHandler:
        return ReconcileInventoryHandler(self.uow)

    def sweeper(self, run_immediately: bool = False) -> ExpirationSweeper:
        reconcile = None
        if self.uow.mode is ConsistencyMode.COMPARE_AND_SWAP:
            reconcile = self.reconcile_inventory()
        return ExpirationSweeper(
            self.expire_orders(),
            reconcile,
            interval_seconds=self.settings.sweep_interval_seconds,
            run_immediately=run_immediately,
        )
