"""
Remote Sync

Mirrors local store changes to the remote gateway and pulls remote data
into the store when a session is established.

DESIGN DECISION: Mirroring is optimistic and fire-and-forget.
- The local mutation has already happened when the mirror call is scheduled
- Each mirror call is its own asyncio task; callers never await them
- A failed call is logged and dropped (no retry, no rollback)
- Local state is the source of truth for the current session

Marking a loan paid mirrors as TWO independent calls (loan status update,
repayment insert). They are not wrapped in one remote transaction.
"""

import asyncio
from typing import Awaitable, Callable

import structlog
from pydantic import BaseModel, Field

from daily_dime.models.events import StoreEvent, StoreEventType
from daily_dime.models.finance import LoanStatus
from daily_dime.services.gateway.interface import RecordGatewayInterface
from daily_dime.store.state import FinanceStore


logger = structlog.get_logger(__name__)

MirrorCall = tuple[str, Callable[[], Awaitable[None]]]


class FetchResult(BaseModel):
    """Outcome of one fetch_data() pull."""

    skipped: bool = Field(
        default=False,
        description="True when no user was signed in, so nothing was fetched"
    )
    applied: list[str] = Field(
        default_factory=list,
        description="Slices that replaced local data"
    )
    failed: dict[str, str] = Field(
        default_factory=dict,
        description="Slice name -> error message for reads that failed"
    )

    @property
    def complete(self) -> bool:
        return not self.skipped and not self.failed


class RemoteSync:
    """
    Store observer that mirrors changes to a RecordGatewayInterface.

    Usage:
        sync = RemoteSync(store, gateway)
        sync.attach()
        await sync.fetch_data()
    """

    def __init__(self, store: FinanceStore, gateway: RecordGatewayInterface):
        self._store = store
        self._gateway = gateway
        self._pending: set[asyncio.Task] = set()

    def attach(self) -> Callable[[], None]:
        """Start mirroring. Returns the unsubscribe callable."""
        return self._store.subscribe(self)

    @property
    def pending_count(self) -> int:
        """Mirror calls scheduled but not finished yet."""
        return len(self._pending)

    # -------------------------------------------------------------------------
    # Mirroring
    # -------------------------------------------------------------------------

    def __call__(self, event: StoreEvent) -> None:
        user = self._store.user
        if user is None:
            return

        for operation, call in self._mirror_calls(user.id, event):
            self._schedule(operation, call, event)

    def _mirror_calls(self, user_id: str, event: StoreEvent) -> list[MirrorCall]:
        """Translate one store event into the gateway calls that mirror it."""
        gateway = self._gateway
        event_type = event.event_type

        if event_type == StoreEventType.TRANSACTION_ADDED:
            transaction = event.transaction
            return [
                ("insert_transaction", lambda: gateway.insert_transaction(user_id, transaction)),
            ]

        if event_type == StoreEventType.TRANSACTION_DELETED:
            transaction_id = event.entity_id
            return [
                ("delete_transaction", lambda: gateway.delete_transaction(transaction_id)),
            ]

        if event_type == StoreEventType.LOAN_ADDED:
            loan = event.loan
            return [
                ("insert_loan", lambda: gateway.insert_loan(user_id, loan)),
            ]

        if event_type == StoreEventType.LOAN_PAID:
            loan_id = event.entity_id
            repayment = event.transaction
            return [
                ("update_loan_status", lambda: gateway.update_loan_status(loan_id, LoanStatus.PAID)),
                ("insert_transaction", lambda: gateway.insert_transaction(user_id, repayment)),
            ]

        if event_type == StoreEventType.LOAN_DELETED:
            loan_id = event.entity_id
            return [
                ("delete_loan", lambda: gateway.delete_loan(loan_id)),
            ]

        if event_type == StoreEventType.PREFERENCES_UPDATED:
            preferences = event.preferences
            return [
                ("upsert_preferences", lambda: gateway.upsert_preferences(user_id, preferences)),
            ]

        # USER_CHANGED and DATA_REPLACED never go back to the remote
        return []

    def _schedule(
        self,
        operation: str,
        call: Callable[[], Awaitable[None]],
        event: StoreEvent,
    ) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "remote_mirror_skipped",
                operation=operation,
                entity_id=event.entity_id,
                reason="no running event loop",
            )
            return

        task = loop.create_task(self._run(operation, call, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run(
        self,
        operation: str,
        call: Callable[[], Awaitable[None]],
        event: StoreEvent,
    ) -> None:
        try:
            await call()
        except Exception as e:
            logger.warning(
                "remote_mirror_failed",
                operation=operation,
                entity_id=event.entity_id,
                event_id=str(event.event_id),
                error=str(e),
            )
            return

        logger.debug(
            "remote_mirror_completed",
            operation=operation,
            entity_id=event.entity_id,
        )

    async def drain(self) -> None:
        """Wait for every scheduled mirror call to finish (shutdown, tests)."""
        while True:
            running = [task for task in self._pending if not task.done()]
            if not running:
                break
            await asyncio.gather(*running, return_exceptions=True)
        # Let the done-callbacks prune the finished tasks
        await asyncio.sleep(0)

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    async def fetch_data(self) -> FetchResult:
        """
        Pull transactions, loans and preferences for the signed-in user.

        The three reads run concurrently but fail independently: every
        slice that was read replaces its local counterpart wholesale, and
        a slice whose read failed keeps its local data. A user without a
        profile row keeps the local preferences.

        No-op (skipped) when nobody is signed in.
        """
        user = self._store.user
        if user is None:
            return FetchResult(skipped=True)

        names = ("transactions", "loans", "preferences")
        results = await asyncio.gather(
            self._gateway.fetch_transactions(user.id),
            self._gateway.fetch_loans(user.id),
            self._gateway.fetch_preferences(user.id),
            return_exceptions=True,
        )

        replaced: dict = {}
        failed: dict[str, str] = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                failed[name] = str(result)
                logger.warning(
                    "remote_fetch_failed",
                    slice=name,
                    user_id=user.id,
                    error=str(result),
                )
            elif result is not None:
                replaced[name] = result

        self._store.replace_data(**replaced)

        return FetchResult(applied=list(replaced), failed=failed)

