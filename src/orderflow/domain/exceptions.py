"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Each carries the HTTP-style status code a wrapping service maps it to.
"""

from __future__ import annotations

from typing import Any


class DomainException(Exception):
    """Base class for all domain errors."""

    status_code = 400


class ValidationError(DomainException):
    """Malformed input, rejected before any transaction starts."""


class InsufficientStockError(DomainException):
    """A product cannot cover the requested quantity at checkout time."""

    def __init__(self, message: str, product_id: str | None = None) -> None:
        super().__init__(message)
        self.product_id = product_id


class ProductUnavailableError(InsufficientStockError):
    """The product is inactive and accepts no new reservations."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    status_code = 404


class ForbiddenError(DomainException):
    """The caller does not own the entity it is acting on."""

    status_code = 403


class InvalidTransitionError(DomainException):
    """An order status change not allowed by the lifecycle."""

    def __init__(self, message: str, current: Any = None, requested: Any = None) -> None:
        super().__init__(message)
        self.current = current
        self.requested = requested


class OrderExpiredError(DomainException):
    """The order's reservation window elapsed; it has been cancelled."""


class PaymentDeclinedError(DomainException):
    """The gateway declined the charge. The order stays payable."""

    def __init__(self, message: str, payment: Any = None) -> None:
        super().__init__(message)
        self.payment = payment


class DuplicateKeyError(DomainException):
    """A unique key (order number, transaction id) is already taken."""

    status_code = 409


class InventoryInvariantViolation(DomainException):
    """Internal bug signal: a ledger operation would break stock invariants."""

    status_code = 500
