"""
Store Package

The in-memory finance store plus its observers:
- persistence: snapshot to local storage after every change
- sync: mirror changes to the remote gateway, pull remote data on sign-in
- session: keep the signed-in user in step with the auth gateway
"""

from daily_dime.store.state import (
    LOAN_REPAYMENT_CATEGORY,
    FinanceStore,
    StoreListener,
    StoreState,
)
from daily_dime.store.persistence import (
    DEFAULT_NAMESPACE_KEY,
    InMemoryStorage,
    JsonFileStorage,
    LocalStorageInterface,
    StorePersister,
)
from daily_dime.store.sync import FetchResult, RemoteSync
from daily_dime.store.session import SessionManager, SessionState

__all__ = [
    # State
    "FinanceStore",
    "LOAN_REPAYMENT_CATEGORY",
    "StoreListener",
    "StoreState",
    # Persistence
    "DEFAULT_NAMESPACE_KEY",
    "InMemoryStorage",
    "JsonFileStorage",
    "LocalStorageInterface",
    "StorePersister",
    # Sync
    "FetchResult",
    "RemoteSync",
    # Session
    "SessionManager",
    "SessionState",
]
