"""
Local Persistence

DESIGN DECISION: The store is persisted the way a browser app persists
to local storage: one opaque string blob under one fixed key. The
StorePersister rehydrates the store from that key once at startup and
then rewrites the whole snapshot after every content change.

The user identity is session scoped and never written.
"""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

import structlog
from pydantic import ValidationError

from daily_dime.models.events import CONTENT_EVENTS, StoreEvent
from daily_dime.models.finance import StoreSnapshot
from daily_dime.store.state import FinanceStore


logger = structlog.get_logger(__name__)

DEFAULT_NAMESPACE_KEY = "daily-dime-storage"


class LocalStorageInterface(ABC):
    """Key/value storage of strings that survives a restart."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key was never written."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass


class InMemoryStorage(LocalStorageInterface):
    """Dict-backed storage for sessions that should leave nothing on disk."""

    def __init__(self):
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage(LocalStorageInterface):
    """
    One JSON file per key inside a directory.

    Writes go to a temp file in the same directory and are renamed into
    place, so a crash mid-write never leaves a truncated snapshot.
    """

    def __init__(self, directory: Path):
        self._directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._directory,
            prefix=f".{key}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class StorePersister:
    """
    Keeps a FinanceStore and local storage in step.

    Usage:
        persister = StorePersister(storage)
        persister.attach(store)   # rehydrate, then write on every change
    """

    def __init__(
        self,
        storage: LocalStorageInterface,
        key: str = DEFAULT_NAMESPACE_KEY,
    ):
        self._storage = storage
        self._key = key
        self._store: Optional[FinanceStore] = None

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> Optional[StoreSnapshot]:
        """
        Read the persisted snapshot.

        Returns None when nothing was persisted yet, or when the blob
        cannot be parsed (logged; the store then starts from defaults).
        """
        try:
            raw = self._storage.get_item(self._key)
        except UnicodeDecodeError as e:
            logger.warning(
                "snapshot_unreadable",
                key=self._key,
                error=str(e),
            )
            return None
        if raw is None:
            return None

        try:
            return StoreSnapshot.from_json(raw)
        except ValidationError as e:
            logger.warning(
                "snapshot_unreadable",
                key=self._key,
                error_count=e.error_count(),
                error=str(e),
            )
            return None

    def save(self, snapshot: StoreSnapshot) -> bool:
        """Write a snapshot. Returns False (logged) if the write failed."""
        try:
            self._storage.set_item(self._key, snapshot.to_json())
            return True
        except OSError as e:
            logger.error("snapshot_write_failed", key=self._key, error=str(e))
            return False

    def rehydrate(self, store: FinanceStore) -> bool:
        """Restore the store from storage. Returns True if a snapshot was applied."""
        snapshot = self.load()
        if snapshot is None:
            return False
        store.restore(snapshot)
        logger.debug(
            "store_rehydrated",
            key=self._key,
            transactions=len(snapshot.state.transactions),
            loans=len(snapshot.state.loans),
        )
        return True

    def attach(self, store: FinanceStore) -> Callable[[], None]:
        """Rehydrate `store`, then persist it after every content change."""
        self.rehydrate(store)
        self._store = store
        return store.subscribe(self)

    def __call__(self, event: StoreEvent) -> None:
        if self._store is None or event.event_type not in CONTENT_EVENTS:
            return
        self.save(self._store.snapshot())
