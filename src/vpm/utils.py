# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
JSON and filesystem helpers shared by the package manager modules
"""

import json
import zipfile
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Optional, Union


class JsonObject(dict):
    """A JSON object that remembers keys repeated in the source text"""

    def __init__(self, pairs=()):
        super().__init__()
        self.duplicate_keys = []
        for key, value in pairs:
            if key in self:
                self.duplicate_keys.append(key)
            self[key] = value


def load_json_document(text: Union[str, bytes]) -> Any:
    """
    Parse JSON text, tolerating a UTF-8 byte order mark.

    Objects are returned as JsonObject so callers can detect repeated keys.
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8-sig")
    return json.loads(text.lstrip("\ufeff"), object_pairs_hook=JsonObject)


def read_json_file(path: Path) -> Any:
    """Read a JSON document from disk"""
    return load_json_document(Path(path).read_bytes())


def write_json_file(path: Path, data: Any):
    """Write a JSON document pretty-printed"""
    Path(path).write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def find_member(archive: zipfile.ZipFile, filename: str) -> Optional[str]:
    """
    Find the shallowest archive member with the given file name.

    Returns:
        Member name or None if the archive does not contain such a file
    """
    candidates = [
        name for name in archive.namelist()
        if not name.endswith("/") and PurePosixPath(name).name == filename
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda name: len(PurePosixPath(name).parts))


def json_from_zip(zip_path: Path, filename: str) -> Dict[str, Any]:
    """
    Read a JSON file out of a zip archive.

    Raises:
        FileNotFoundError: If the archive has no member with that file name
    """
    with zipfile.ZipFile(zip_path) as archive:
        member = find_member(archive, filename)
        if member is None:
            raise FileNotFoundError(f"{filename} not found in {zip_path}")
        return load_json_document(archive.read(member))


def is_empty_dir(path: Path) -> bool:
    """True if path is a directory without entries"""
    return next(Path(path).iterdir(), None) is None
