"""All-or-nothing execution of state-mutating calls.

Every entry point that mutates a pool runs inside a UnitOfWork:

1. A per-pool reentrancy guard rejects a second call against the same pool
   while the first is still running (e.g. a settlement callback trading
   back into the pool).
2. Every enlisted participant is snapshotted before the call and restored
   if the call raises.
3. Pool state-change notifications are held back until the call commits.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import structlog

from launchpad.errors import ReentrancyError

if TYPE_CHECKING:
    from launchpad.pools.accounts import PoolAccounts

logger = structlog.get_logger()


@runtime_checkable
class Transactional(Protocol):
    """State that can be captured and put back."""

    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class ReentrancyGuard:
    """Per-pool lock for state-mutating entry points."""

    def __init__(self) -> None:
        self._locked: set[str] = set()

    def is_locked(self, pool_id: str) -> bool:
        return pool_id in self._locked

    @contextmanager
    def hold(self, pool_id: str) -> Iterator[None]:
        """Hold the pool's lock for the duration of the block.

        Raises:
            ReentrancyError: If the pool is already locked
        """
        if pool_id in self._locked:
            logger.warning("reentrant_call_rejected", pool_id=pool_id)
            raise ReentrancyError(f"Pool {pool_id} is already mid-call")
        self._locked.add(pool_id)
        try:
            yield
        finally:
            self._locked.discard(pool_id)


@contextmanager
def atomic(participants: Sequence[Transactional]) -> Iterator[None]:
    """Restore every participant to its entry state if the block raises."""
    states = [participant.snapshot() for participant in participants]
    try:
        yield
    except BaseException:
        for participant, state in zip(participants, states):
            participant.restore(state)
        raise


class UnitOfWork:
    """Reentrancy guard, rollback and deferred notifications in one scope."""

    def __init__(self, accounts: PoolAccounts, guard: ReentrancyGuard | None = None) -> None:
        self.accounts = accounts
        self.guard = guard or ReentrancyGuard()
        self._participants: list[Transactional] = [accounts]

    def enlist(self, participant: object) -> None:
        """Add a participant. Objects without snapshot/restore are ignored."""
        if isinstance(participant, Transactional) and participant not in self._participants:
            self._participants.append(participant)

    @contextmanager
    def __call__(self, pool_id: str) -> Iterator[None]:
        with self.guard.hold(pool_id), self.accounts.deferred(), atomic(self._participants):
            yield
