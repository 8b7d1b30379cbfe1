"""
Flight Planner — composition root

Builds the progression store the pages share:
  SqlStorage (or any backend) → StorageCache → HistoryLedger / AnalyticsTracker /
  AssessmentProgress → ProgressionStore

One exit hook, registered on first use, closes every cache still open:
pending debounced writes are flushed and the backend is disposed.
"""
from __future__ import annotations

import atexit
import threading
import weakref
from typing import Optional

import structlog

from flight_planner.core.config import Settings, get_settings
from flight_planner.services.analytics import AnalyticsTracker
from flight_planner.services.assessment_progress import AssessmentProgress
from flight_planner.services.durable_storage import SqlStorage, StorageBackend
from flight_planner.services.history_ledger import HistoryLedger
from flight_planner.services.progression_store import ProgressionStore
from flight_planner.services.storage_cache import StorageCache

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.ConsoleRenderer() if get_settings().app_env == "development"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(get_settings().log_level),
)
logger = structlog.get_logger()

_open_caches: "weakref.WeakSet[StorageCache]" = weakref.WeakSet()
_exit_hook_registered = False
_registry_lock = threading.Lock()


def close_stores() -> None:
    """Flush and dispose every cache built by create_store()."""
    with _registry_lock:
        caches = list(_open_caches)
        _open_caches.clear()
    for cache in caches:
        cache.close()
    logger.info("progression_stores_closed", caches=len(caches))


def _track(cache: StorageCache) -> None:
    global _exit_hook_registered
    with _registry_lock:
        _open_caches.add(cache)
        if not _exit_hook_registered:
            atexit.register(close_stores)
            _exit_hook_registered = True


def create_store(
    settings: Optional[Settings] = None,
    backend: Optional[StorageBackend] = None,
) -> ProgressionStore:
    settings = settings or get_settings()
    if backend is None:
        backend = SqlStorage(settings.database_url, max_value_bytes=settings.storage_max_value_bytes)

    cache = StorageCache(backend, settings)
    _track(cache)

    store = ProgressionStore(
        cache,
        ledger=HistoryLedger(cache, settings),
        analytics=AnalyticsTracker(cache, settings),
        progress=AssessmentProgress(cache, settings),
        settings=settings,
    )
    logger.info("progression_store_ready", app=settings.app_name, backend=type(backend).__name__)
    return store
