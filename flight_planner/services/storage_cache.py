"""
Storage cache — memory tier in front of durable storage.

Reads are served from memory while the entry is fresh (TTL given at write
or read time), otherwise read through to the backend and repopulated.

Writes always land in memory first, so a reader sees its own write before
anything reaches disk. Immediate writes go straight through; the rest are
queued and a single debounce timer (re-armed on every queued write) drains
the queue in one batch. flush() drains it on demand and at teardown.

Storage failures never reach the caller:
  - failed or corrupt reads log and return None
  - a quota failure retries once with a truncated list, then gives up
  - any other write failure logs and drops the write
  - a failed delete leaves the key reading as absent and is retried on flush
"""
from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

import structlog

from flight_planner.core.config import Settings, get_settings
from flight_planner.services.durable_storage import (
    StorageBackend,
    StorageError,
    StorageQuotaExceeded,
)

logger = structlog.get_logger()


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]
Clock = Callable[[], int]


def epoch_ms() -> int:
    return int(time.time() * 1000)


def _daemon_timer(delay_seconds: float, callback: Callable[[], None]) -> Timer:
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    return timer


@dataclass
class CacheEntry:
    value: Any
    timestamp: int
    ttl: Optional[int] = None

    def is_expired(self, now: int, read_ttl: Optional[int] = None) -> bool:
        ttls = [t for t in (self.ttl, read_ttl) if t is not None]
        if not ttls:
            return False
        return now - self.timestamp >= min(ttls)


class StorageCache:
    def __init__(
        self,
        backend: StorageBackend,
        settings: Optional[Settings] = None,
        clock: Clock = epoch_ms,
        timer_factory: TimerFactory = _daemon_timer,
    ) -> None:
        self.backend = backend
        self.settings = settings or get_settings()
        self._clock = clock
        self._timer_factory = timer_factory
        self._memory: dict[str, CacheEntry] = {}
        self._pending: dict[str, Any] = {}
        # Keys whose durable delete failed; read as absent until a flush removes them
        self._deletes: set[str] = set()
        self._timer: Optional[Timer] = None
        self._lock = threading.RLock()

    # ── Reads ──

    def get_item(self, key: str, ttl: Optional[int] = None) -> Any:
        with self._lock:
            now = self._clock()
            entry = self._memory.get(key)
            if entry is not None:
                if not entry.is_expired(now, ttl):
                    return entry.value
                del self._memory[key]

            # A queued write is newer than anything on disk
            if key in self._pending:
                value = self._pending[key]
                self._memory[key] = CacheEntry(value=value, timestamp=now, ttl=ttl)
                return value

            if key in self._deletes:
                return None

            try:
                raw = self.backend.get(key)
            except StorageError as e:
                logger.error("storage_read_failed", key=key, error=str(e))
                return None
            if raw is None:
                return None

            try:
                value = json.loads(raw)
            except ValueError as e:
                logger.error("storage_corrupt_value", key=key, error=str(e))
                return None

            self._memory[key] = CacheEntry(value=value, timestamp=now, ttl=ttl)
            return value

    def get_multiple(self, keys: list[str]) -> dict[str, Any]:
        return {key: self.get_item(key) for key in keys}

    # ── Writes ──

    def set_item(self, key: str, value: Any, immediate: bool = False, ttl: Optional[int] = None) -> None:
        with self._lock:
            self._memory[key] = CacheEntry(value=value, timestamp=self._clock(), ttl=ttl)
            if immediate:
                self._pending.pop(key, None)
                if self._write(key, value):
                    self._deletes.discard(key)
            else:
                self._pending[key] = value
                self._arm_timer()

    def set_multiple(self, items: dict[str, Any], immediate: bool = False) -> None:
        for key, value in items.items():
            self.set_item(key, value, immediate)

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._memory.pop(key, None)
            self._pending.pop(key, None)
            if self._remove(key):
                self._deletes.discard(key)
            else:
                self._deletes.add(key)
                self._arm_timer()

    def flush(self) -> None:
        with self._lock:
            self._cancel_timer()
            pending, self._pending = self._pending, {}
            for key in list(self._deletes):
                if key not in pending and self._remove(key):
                    self._deletes.discard(key)
            for key, value in pending.items():
                if self._write(key, value):
                    self._deletes.discard(key)
            if pending:
                logger.debug("storage_flushed", keys=len(pending))

    def clear_cache(self) -> None:
        """Drop the memory tier. Queued writes and deletes are kept."""
        with self._lock:
            self._memory.clear()

    def close(self) -> None:
        """Flush, then release the backend's resources."""
        with self._lock:
            self.flush()
            self.backend.dispose()

    @property
    def pending_keys(self) -> list[str]:
        with self._lock:
            return list(self._pending)

    @property
    def pending_deletes(self) -> list[str]:
        with self._lock:
            return sorted(self._deletes)

    # ── Internals ──

    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._timer = self._timer_factory(self.settings.write_debounce_ms / 1000, self.flush)
        self._timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _reduce(self, value: Any) -> Optional[list]:
        if not isinstance(value, list) or len(value) < 2:
            return None
        keep = self.settings.storage_retry_keep
        if len(value) <= keep:
            keep = len(value) // 2
        return value[-keep:]

    def _remove(self, key: str) -> bool:
        try:
            self.backend.remove(key)
            return True
        except StorageError as e:
            logger.error("storage_remove_failed", key=key, error=str(e))
            return False

    def _write(self, key: str, value: Any) -> bool:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.error("storage_serialize_failed", key=key, error=str(e))
            return False

        try:
            self.backend.set(key, raw)
            return True
        except StorageQuotaExceeded as e:
            logger.warning("storage_quota_exceeded", key=key, bytes=len(raw), error=str(e))
        except StorageError as e:
            logger.error("storage_write_failed", key=key, error=str(e))
            return False

        reduced = self._reduce(value)
        if reduced is None:
            logger.error("storage_write_dropped", key=key, reason="not reducible")
            return False
        try:
            self.backend.set(key, json.dumps(reduced))
        except StorageError as e:
            logger.error("storage_write_dropped", key=key, error=str(e))
            return False

        logger.info("storage_write_truncated", key=key, kept=len(reduced), original=len(value))
        return True
