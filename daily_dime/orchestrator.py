"""
Main Orchestrator for Daily Dime

Wires the store to its observers and exposes the one object the view
layer holds on to.

Order matters at startup:
1. Build the store with configured defaults
2. Rehydrate it from local storage (before any operation runs)
3. Attach the event logger and remote sync observers
4. start() probes the auth session and, if signed in, fetches remote data

DESIGN DECISION: Remote sync is optional. Without Supabase settings the
app runs local-only: same store, same persistence, no mirror calls.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import structlog

from daily_dime.analytics import recent_transactions
from daily_dime.audit import StoreEventLogger
from daily_dime.config import get_settings
from daily_dime.models.finance import Transaction, UserPreferences
from daily_dime.services.gateway import (
    AuthGatewayInterface,
    RecordGatewayInterface,
    SupabaseAuthGateway,
    SupabaseClient,
    SupabaseRecordGateway,
)
from daily_dime.store import (
    FetchResult,
    FinanceStore,
    InMemoryStorage,
    JsonFileStorage,
    LocalStorageInterface,
    RemoteSync,
    SessionManager,
    StorePersister,
    StoreState,
)


logger = structlog.get_logger(__name__)


@dataclass
class AppComponents:
    """
    Everything the view layer needs.

    Read state from `store`, call its mutation methods from UI handlers,
    and use `session` for the auth forms.
    """

    store: FinanceStore
    persister: StorePersister
    event_logger: StoreEventLogger
    sync: Optional[RemoteSync] = None
    session: Optional[SessionManager] = None
    recent_limit: int = 5
    _unsubscribers: list[Callable[[], None]] = field(default_factory=list)

    @property
    def remote_enabled(self) -> bool:
        return self.sync is not None

    async def start(self) -> None:
        """Establish the session (if remote sync is configured)."""
        if self.session is not None:
            await self.session.start()

    async def fetch_data(self) -> FetchResult:
        """Pull remote data into the store (skipped when local-only or signed out)."""
        if self.sync is None:
            return FetchResult(skipped=True)
        return await self.sync.fetch_data()

    def recent_transactions(self) -> list[Transaction]:
        """The dashboard's recent list, sized by the app settings."""
        return recent_transactions(self.store.transactions, limit=self.recent_limit)

    async def shutdown(self) -> None:
        """Release the auth subscription, flush mirror calls, detach observers."""
        if self.session is not None:
            self.session.stop()
        if self.sync is not None:
            await self.sync.drain()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()


def create_app_components(
    use_persistence: Optional[bool] = None,
    use_remote: bool = True,
    storage: Optional[LocalStorageInterface] = None,
    record_gateway: Optional[RecordGatewayInterface] = None,
    auth_gateway: Optional[AuthGatewayInterface] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_persistence: Persist to disk; defaults to the storage settings
        use_remote: Try to set up remote sync (falls back to local-only
                    when the Supabase settings are missing)
        storage: Local storage override (tests)
        record_gateway: Record gateway override (tests)
        auth_gateway: Auth gateway override (tests)

    Returns:
        The wired AppComponents; call `await components.start()` next
    """
    settings = get_settings()
    app_settings = settings.app
    storage_settings = settings.storage

    logging.getLogger("daily_dime").setLevel(
        logging.DEBUG if app_settings.debug_mode else logging.INFO
    )

    store = FinanceStore(
        StoreState(
            preferences=UserPreferences(currency=app_settings.default_currency)
        )
    )

    if storage is None:
        enabled = storage_settings.enabled if use_persistence is None else use_persistence
        storage = JsonFileStorage(storage_settings.directory) if enabled else InMemoryStorage()

    persister = StorePersister(storage, key=storage_settings.namespace_key)
    event_logger = StoreEventLogger()

    unsubscribers = [
        persister.attach(store),
        store.subscribe(event_logger),
    ]

    sync = None
    session = None
    if use_remote:
        if record_gateway is None or auth_gateway is None:
            try:
                client = SupabaseClient()
                record_gateway = record_gateway or SupabaseRecordGateway(client)
                auth_gateway = auth_gateway or SupabaseAuthGateway(client)
            except Exception as e:
                # Remote not configured - continue local-only
                logger.warning("remote_sync_disabled", error=str(e))
                record_gateway = None
                auth_gateway = None

        if record_gateway is not None and auth_gateway is not None:
            sync = RemoteSync(store, record_gateway)
            unsubscribers.append(sync.attach())
            session = SessionManager(store, auth_gateway, sync)

    logger.info(
        "app_components_created",
        environment=app_settings.app_environment,
        remote_enabled=sync is not None,
        persistent=not isinstance(storage, InMemoryStorage),
    )

    return AppComponents(
        store=store,
        persister=persister,
        event_logger=event_logger,
        sync=sync,
        session=session,
        recent_limit=app_settings.recent_transactions_limit,
        _unsubscribers=unsubscribers,
    )
