"""
History Ledger — append-only snapshots, one per assessment submission.

Appends write through immediately (losing a submission on crash would be
visible to the user). clear() removes the ledger key outright.
"""
from __future__ import annotations

from typing import Optional

import structlog
from pydantic import ValidationError

from flight_planner.core.config import Settings, get_settings
from flight_planner.schemas.progression import HistoryEntry
from flight_planner.services.storage_cache import StorageCache

logger = structlog.get_logger()


class HistoryLedger:
    def __init__(self, cache: StorageCache, settings: Optional[Settings] = None) -> None:
        self.cache = cache
        self.settings = settings or get_settings()

    @property
    def key(self) -> str:
        return self.settings.history_key

    def _raw_entries(self) -> list[dict]:
        stored = self.cache.get_item(self.key)
        if not isinstance(stored, list):
            if stored is not None:
                logger.warning("history_ledger_malformed", key=self.key, type=type(stored).__name__)
            return []
        return stored

    def append(self, entry: HistoryEntry) -> None:
        entries = [*self._raw_entries(), entry.model_dump(mode="json")]
        self.cache.set_item(self.key, entries, immediate=True)
        logger.info(
            "history_entry_appended",
            assessment_type=entry.assessment_type.value,
            score=entry.combined_score,
            plane_level=entry.plane_level,
            entries=len(entries),
        )

    def get_history(self) -> list[HistoryEntry]:
        """Entries in ascending timestamp order (stable for equal timestamps)."""
        history: list[HistoryEntry] = []
        for raw in self._raw_entries():
            try:
                history.append(HistoryEntry.model_validate(raw))
            except ValidationError as e:
                logger.warning("history_entry_skipped", error=str(e))
        return sorted(history, key=lambda h: h.timestamp)

    def latest(self) -> Optional[HistoryEntry]:
        history = self.get_history()
        return history[-1] if history else None

    def __len__(self) -> int:
        return len(self.get_history())

    def clear(self) -> None:
        self.cache.remove_item(self.key)
        logger.info("history_cleared", key=self.key)
