"""Generators for human-readable unique identifiers.

Random UUIDs make collisions practically impossible; stores still
enforce uniqueness and callers retry on DuplicateKeyError.
"""

from __future__ import annotations

import uuid
from typing import Callable

IdGenerator = Callable[[], str]


def new_order_number() -> str:
    return f"ORD-{uuid.uuid4().hex.upper()}"


def new_transaction_id() -> str:
    return f"TXN-{uuid.uuid4().hex.upper()}"


def new_payment_id() -> str:
    return uuid.uuid4().hex
