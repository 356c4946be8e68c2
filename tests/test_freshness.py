# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for the FreshnessRecord (vpm.json)
"""

import json
from datetime import datetime, timedelta, UTC
from unittest.mock import patch

import pytest

from src.vpm.freshness import FreshnessRecord


class TestFreshnessRecord:
    """Test last update bookkeeping"""

    def test_unknown_package_needs_check(self, tmp_path):
        record = FreshnessRecord(tmp_path / "vpm.json").load()
        assert record.needs_check("lib")
        assert record.last_update("lib") is None

    def test_mark_and_check(self, tmp_path):
        now = datetime(2025, 1, 1, tzinfo=UTC)
        record = FreshnessRecord(tmp_path / "vpm.json")
        record.mark_up_to_date("lib", now=now)

        assert not record.needs_check("lib", now=now + timedelta(hours=23))
        assert record.needs_check("lib", now=now + timedelta(days=1, seconds=1))

    def test_custom_interval(self, tmp_path):
        now = datetime(2025, 1, 1, tzinfo=UTC)
        record = FreshnessRecord(tmp_path / "vpm.json", interval=timedelta(hours=1))
        record.mark_up_to_date("lib", now=now)
        assert record.needs_check("lib", now=now + timedelta(hours=2))

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "vpm.json"
        now = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
        record = FreshnessRecord(path)
        record.mark_up_to_date("lib", now=now)
        record.save()

        data = json.loads(path.read_text())
        assert data == {"vpm": {"lastUpdate": {"lib": now.isoformat()}}}
        assert FreshnessRecord(path).load().last_update("lib") == now

    def test_empty_record_is_not_written(self, tmp_path):
        path = tmp_path / "vpm.json"
        FreshnessRecord(path).load().save()
        assert not path.exists()

    def test_broken_file_starts_empty(self, tmp_path):
        path = tmp_path / "vpm.json"
        path.write_text("{not json")
        record = FreshnessRecord(path).load()
        assert record.needs_check("lib")

    def test_unreadable_file_starts_empty(self, tmp_path):
        path = tmp_path / "vpm.json"
        path.mkdir()
        assert FreshnessRecord(path).load().needs_check("lib")

    def test_undecodable_file_starts_empty(self, tmp_path):
        path = tmp_path / "vpm.json"
        path.write_bytes(b"\xff\xfe{")
        assert FreshnessRecord(path).load().needs_check("lib")

    def test_programming_errors_propagate(self, tmp_path):
        path = tmp_path / "vpm.json"
        path.write_text("{}")
        with patch("src.vpm.freshness.read_json_file", side_effect=TypeError("bad call")):
            with pytest.raises(TypeError):
                FreshnessRecord(path).load()

    def test_keeps_foreign_keys(self, tmp_path):
        path = tmp_path / "vpm.json"
        path.write_text(json.dumps({"other": 1, "vpm": {"lastUpdate": "garbage"}}))
        record = FreshnessRecord(path).load()
        record.mark_up_to_date("lib")
        record.save()

        data = json.loads(path.read_text())
        assert data["other"] == 1
        assert "lib" in data["vpm"]["lastUpdate"]

    def test_naive_timestamp_is_utc(self, tmp_path):
        path = tmp_path / "vpm.json"
        path.write_text(json.dumps({"vpm": {"lastUpdate": {"lib": "2025-01-01T00:00:00"}}}))
        record = FreshnessRecord(path).load()
        assert record.last_update("lib") == datetime(2025, 1, 1, tzinfo=UTC)
