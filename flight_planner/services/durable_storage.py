"""
Durable key/value backends behind the storage cache.

Values are stored as JSON text. Backends raise StorageError on failure
(StorageQuotaExceeded when a value would not fit); the cache layer is the
only caller and turns those into logged, degraded behaviour.

MemoryStorage:  process-local dict, optional total byte quota (tests,
                private-mode sessions).
SqlStorage:     SQLAlchemy table `storage_item`, SQLite file by default.
"""
from __future__ import annotations

from typing import Optional, Protocol

import structlog
from sqlalchemy import create_engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from flight_planner.models.storage_item import Base, StorageItem

logger = structlog.get_logger()


class StorageError(Exception):
    """Durable storage read/write failed."""


class StorageQuotaExceeded(StorageError):
    """The value does not fit in the remaining storage quota."""


class StorageBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...

    def dispose(self) -> None: ...


class MemoryStorage:
    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self._items: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def _used_bytes(self, excluding: Optional[str] = None) -> int:
        return sum(
            len(k.encode("utf-8")) + len(v.encode("utf-8"))
            for k, v in self._items.items()
            if k != excluding
        )

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            needed = len(key.encode("utf-8")) + len(value.encode("utf-8"))
            if self._used_bytes(excluding=key) + needed > self.quota_bytes:
                raise StorageQuotaExceeded(f"quota of {self.quota_bytes} bytes exceeded writing {key!r}")
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def dispose(self) -> None:
        pass


class SqlStorage:
    def __init__(self, database_url: str, max_value_bytes: Optional[int] = None) -> None:
        self.engine = create_engine(database_url)
        self._sessions = sessionmaker(bind=self.engine, class_=Session, expire_on_commit=False)
        self.max_value_bytes = max_value_bytes
        Base.metadata.create_all(self.engine)

    def get(self, key: str) -> Optional[str]:
        try:
            with self._sessions() as session:
                item = session.get(StorageItem, key)
                return item.value if item is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"read failed for {key!r}: {e}") from e

    def set(self, key: str, value: str) -> None:
        if self.max_value_bytes is not None and len(value.encode("utf-8")) > self.max_value_bytes:
            raise StorageQuotaExceeded(
                f"value for {key!r} exceeds {self.max_value_bytes} bytes"
            )
        try:
            with self._sessions() as session:
                item = session.get(StorageItem, key)
                if item is None:
                    session.add(StorageItem(key=key, value=value))
                else:
                    item.value = value
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"write failed for {key!r}: {e}") from e

    def remove(self, key: str) -> None:
        try:
            with self._sessions() as session:
                session.execute(delete(StorageItem).where(StorageItem.key == key))
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"remove failed for {key!r}: {e}") from e

    def keys(self) -> list[str]:
        try:
            with self._sessions() as session:
                return list(session.scalars(select(StorageItem.key)))
        except SQLAlchemyError as e:
            raise StorageError(f"key listing failed: {e}") from e

    def dispose(self) -> None:
        self.engine.dispose()
        logger.debug("sql_storage_disposed", url=str(self.engine.url))
