# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Installation Journal

Single responsibility: record the files and directories one install created
(journal.json), so that uninstall can remove exactly those.
"""

import json
import logging
from pathlib import Path, PurePosixPath
from typing import Iterator, List, Union

from .models import JournalEntry, JournalEntryType
from .utils import read_json_file

logger = logging.getLogger(__name__)

JOURNAL_FILE = "journal.json"


class Journal:
    """Ordered list of entries created by one package install"""

    def __init__(self, entries: List[JournalEntry] = None):
        self._entries: List[JournalEntry] = list(entries or [])

    @property
    def entries(self) -> List[JournalEntry]:
        return list(self._entries)

    def __iter__(self) -> Iterator[JournalEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, kind: JournalEntryType, path: Union[str, PurePosixPath]):
        """
        Append an entry.

        Args:
            kind: File or directory
            path: Path relative to the package directory, '/'-separated
        """
        self._entries.append(JournalEntry(kind=kind, path=PurePosixPath(path).as_posix()))

    def files(self) -> List[JournalEntry]:
        return [e for e in self._entries if e.kind == JournalEntryType.FILE]

    def directories(self) -> List[JournalEntry]:
        """Directory entries without repetitions, deepest first"""
        unique = {}
        for entry in self._entries:
            if entry.kind == JournalEntryType.DIRECTORY:
                unique.setdefault(entry.path, entry)
        return sorted(unique.values(), key=lambda e: e.depth, reverse=True)

    def to_list(self) -> List[dict]:
        return [{"kind": e.kind.value, "path": e.path} for e in self._entries]

    def save(self, path: Path):
        """Write the journal as a JSON array"""
        logger.debug(f"Saving installation journal to {path}")
        Path(path).write_text(json.dumps(self.to_list(), indent=2) + "\n", encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> "Journal":
        """
        Read a journal written by save().

        Raises:
            FileNotFoundError: If there is no journal at path
            ValueError: If the file is not a journal
        """
        data = read_json_file(path)
        if not isinstance(data, list):
            raise ValueError(f"Malformed journal: {path}")
        return cls([JournalEntry(kind=JournalEntryType(item["kind"]), path=item["path"]) for item in data])
