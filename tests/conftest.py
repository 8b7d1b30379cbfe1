"""
Shared fixtures: a manual clock, a manual debounce timer and a cache over
MemoryStorage wired to both.
"""
from typing import Optional

import pytest

from flight_planner.core.config import Settings
from flight_planner.services.durable_storage import MemoryStorage, StorageError
from flight_planner.services.storage_cache import StorageCache


class FakeClock:
    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeTimer:
    """Stands in for threading.Timer; fires only when told to."""

    def __init__(self, delay: float, callback):
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.started and not self.cancelled:
            self.callback()


class FailingStorage:
    """Every operation fails, as with storage disabled in private browsing."""

    def get(self, key: str) -> Optional[str]:
        raise StorageError("storage unavailable")

    def set(self, key: str, value: str) -> None:
        raise StorageError("storage unavailable")

    def remove(self, key: str) -> None:
        raise StorageError("storage unavailable")

    def keys(self) -> list[str]:
        raise StorageError("storage unavailable")

    def dispose(self) -> None:
        pass


class StuckRemoveStorage(MemoryStorage):
    """MemoryStorage whose deletes fail until `remove_fails` is switched off."""

    def __init__(self):
        super().__init__()
        self.remove_fails = True

    def remove(self, key: str) -> None:
        if self.remove_fails:
            raise StorageError("delete rejected")
        super().remove(key)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers() -> list[FakeTimer]:
    return []


@pytest.fixture
def timer_factory(timers):
    def factory(delay, callback):
        timer = FakeTimer(delay, callback)
        timers.append(timer)
        return timer
    return factory


@pytest.fixture
def backend() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cache(backend, settings, clock, timer_factory) -> StorageCache:
    return StorageCache(backend, settings, clock=clock, timer_factory=timer_factory)
