# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for the installation Journal
"""

import json

import pytest

from src.vpm.journal import Journal
from src.vpm.models import JournalEntryType


class TestJournal:
    """Test journal entries and persistence"""

    def test_add_keeps_order(self):
        journal = Journal()
        journal.add(JournalEntryType.DIRECTORY, "source")
        journal.add(JournalEntryType.FILE, "source/lib.d")

        assert [(e.kind, e.path) for e in journal] == [
            (JournalEntryType.DIRECTORY, "source"),
            (JournalEntryType.FILE, "source/lib.d"),
        ]
        assert len(journal) == 2

    def test_directories_deepest_first_without_repetitions(self):
        journal = Journal()
        journal.add(JournalEntryType.DIRECTORY, "a")
        journal.add(JournalEntryType.DIRECTORY, "a/b/c")
        journal.add(JournalEntryType.DIRECTORY, "a/b")
        journal.add(JournalEntryType.DIRECTORY, "a")
        journal.add(JournalEntryType.FILE, "a/b/c/file")

        assert [e.path for e in journal.directories()] == ["a/b/c", "a/b", "a"]
        assert [e.path for e in journal.files()] == ["a/b/c/file"]

    def test_save_and_load(self, tmp_path):
        journal = Journal()
        journal.add(JournalEntryType.DIRECTORY, "views")
        journal.add(JournalEntryType.FILE, "views/index.dt")
        path = tmp_path / "journal.json"

        journal.save(path)

        assert json.loads(path.read_text()) == [
            {"kind": "directory", "path": "views"},
            {"kind": "file", "path": "views/index.dt"},
        ]
        assert Journal.load(path).entries == journal.entries

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Journal.load(tmp_path / "journal.json")

    def test_load_malformed(self, tmp_path):
        path = tmp_path / "journal.json"
        path.write_text('{"kind": "file"}')
        with pytest.raises(ValueError):
            Journal.load(path)
