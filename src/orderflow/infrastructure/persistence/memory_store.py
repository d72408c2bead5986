"""In-process store: all state in memory, guarded by one lock."""

from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from typing import Iterator

from orderflow.domain.repository.unit_of_work import ConsistencyMode, Transaction, UnitOfWork
from orderflow.infrastructure.persistence.state import (
    BoundState,
    StateAccess,
    StoreState,
    bind_transaction,
)


class InMemoryUnitOfWork(UnitOfWork):
    """Unit of work over a StoreState held in memory.

    TRANSACTIONAL units are serialized on the store lock and work on a
    deep copy that replaces the live state only on commit.
    COMPARE_AND_SWAP units take the lock per repository call.
    """

    def __init__(
        self,
        mode: ConsistencyMode = ConsistencyMode.TRANSACTIONAL,
        state: StoreState | None = None,
    ) -> None:
        self._mode = mode
        self._state = state or StoreState()
        self._lock = threading.RLock()

    @property
    def mode(self) -> ConsistencyMode:
        return self._mode

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        if self._mode is ConsistencyMode.TRANSACTIONAL:
            with self._lock:
                working = copy.deepcopy(self._state)
                yield bind_transaction(BoundState(working))
                self._state = working
            return

        tx = bind_transaction(_LockedState(self))
        try:
            yield tx
        except BaseException:
            tx.compensate()
            raise

    def snapshot(self) -> StoreState:
        """A consistent copy of everything, for inspection."""
        with self._lock:
            return copy.deepcopy(self._state)


class _LockedState(StateAccess):

    def __init__(self, uow: InMemoryUnitOfWork) -> None:
        self._uow = uow

    @contextmanager
    def reading(self) -> Iterator[StoreState]:
        with self._uow._lock:
            yield self._uow._state

    @contextmanager
    def writing(self) -> Iterator[StoreState]:
        with self._uow._lock:
            yield self._uow._state
