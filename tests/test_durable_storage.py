"""
Tests for the durable backends.
"""
import json

import pytest

from flight_planner.core.config import Settings
from flight_planner.models.storage_item import Base
from flight_planner.services.durable_storage import (
    MemoryStorage,
    SqlStorage,
    StorageError,
    StorageQuotaExceeded,
)
from flight_planner.services.storage_cache import StorageCache


def _sql(tmp_path, **kwargs) -> SqlStorage:
    return SqlStorage(f"sqlite:///{tmp_path / 'flight_planner.db'}", **kwargs)


class TestSqlStorage:
    def test_set_get_overwrite(self, tmp_path):
        storage = _sql(tmp_path)
        assert storage.get("k") is None

        storage.set("k", '"one"')
        storage.set("k", '"two"')
        assert storage.get("k") == '"two"'
        assert storage.keys() == ["k"]

    def test_remove(self, tmp_path):
        storage = _sql(tmp_path)
        storage.set("k", "1")
        storage.remove("k")
        storage.remove("never-set")
        assert storage.get("k") is None

    def test_survives_reopen(self, tmp_path):
        _sql(tmp_path).set("assessmentHistory", "[]")
        assert _sql(tmp_path).get("assessmentHistory") == "[]"

    def test_value_quota(self, tmp_path):
        storage = _sql(tmp_path, max_value_bytes=10)
        with pytest.raises(StorageQuotaExceeded):
            storage.set("k", json.dumps("x" * 20))

    def test_database_errors_wrapped(self, tmp_path):
        storage = _sql(tmp_path)
        Base.metadata.drop_all(storage.engine)
        with pytest.raises(StorageError):
            storage.get("k")
        with pytest.raises(StorageError):
            storage.set("k", "1")
        storage.dispose()

    def test_cache_over_sql(self, tmp_path):
        cache = StorageCache(_sql(tmp_path), Settings())
        cache.set_item("flightPlannerState", {"assessment_responses": []})
        cache.flush()

        reopened = StorageCache(_sql(tmp_path), Settings())
        assert reopened.get_item("flightPlannerState") == {"assessment_responses": []}


class TestMemoryStorage:
    def test_quota_counts_keys_and_values(self):
        storage = MemoryStorage(quota_bytes=10)
        storage.set("ab", "123")  # 5 bytes
        with pytest.raises(StorageQuotaExceeded):
            storage.set("cd", "12345")  # would be 12

    def test_overwrite_does_not_double_count(self):
        storage = MemoryStorage(quota_bytes=10)
        storage.set("ab", "12345678")
        storage.set("ab", "87654321")
        assert storage.get("ab") == "87654321"
