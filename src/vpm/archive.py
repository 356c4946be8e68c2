# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Archive Extraction

Single responsibility: unpack a package zip into its module directory while
recording every created entry in a Journal.
"""

import logging
import zipfile
from pathlib import Path, PurePosixPath
from typing import List, Optional, Sequence

from .journal import Journal
from .models import JournalEntryType

logger = logging.getLogger(__name__)

PACKAGE_FILE = "package.json"


def _is_directory(name: str) -> bool:
    return name.endswith("/")


def find_root_prefix(names: Sequence[str], marker: str = PACKAGE_FILE) -> PurePosixPath:
    """
    Locate the package's top level inside an archive.

    GitHub style archives put the contents into a subfolder. The folder
    holding the shallowest marker file wins; without a marker the common
    directory of all members is used.

    Args:
        names: Archive member names
        marker: File name marking the top level of a package

    Returns:
        Prefix to strip from member names (empty path for none)
    """
    markers = [
        PurePosixPath(name) for name in names
        if not _is_directory(name) and PurePosixPath(name).name == marker
    ]
    if markers:
        return min(markers, key=lambda p: len(p.parts)).parent

    common: Optional[tuple] = None
    for name in names:
        parts = PurePosixPath(name).parts
        if not _is_directory(name):
            parts = parts[:-1]
        if common is None:
            common = parts
            continue
        length = 0
        for a, b in zip(common, parts):
            if a != b:
                break
            length += 1
        common = common[:length]

    if not common:
        return PurePosixPath()
    return PurePosixPath(*common)


def clean_path(name: str, prefix: PurePosixPath) -> Optional[PurePosixPath]:
    """
    Member path relative to the package top level.

    Returns:
        Relative path, or None for members outside the prefix, the prefix
        itself and paths that would escape the package directory
    """
    parts = PurePosixPath(name).parts
    prefix_parts = prefix.parts if str(prefix) != "." else ()
    if parts[:len(prefix_parts)] != prefix_parts:
        return None
    rest = parts[len(prefix_parts):]
    if not rest:
        return None
    if PurePosixPath(name).is_absolute() or any(part in ("..", "") for part in rest):
        logger.warning(f"Skipping archive member outside the package directory: '{name}'")
        return None
    return PurePosixPath(*rest)


def extract_package(archive: zipfile.ZipFile, destination: Path, journal: Journal) -> List[PurePosixPath]:
    """
    Extract a package archive into destination.

    Directories are created first, one journal entry per created path
    segment, then the files, one journal entry each.

    Args:
        archive: Opened package archive
        destination: Module directory of the package (created if missing)
        journal: Journal receiving the created entries

    Returns:
        Relative paths of the written files
    """
    members = archive.infolist()
    prefix = find_root_prefix([m.filename for m in members])
    logger.debug(f"Installing from zip with root prefix '{prefix}'")

    destination.mkdir(parents=True, exist_ok=True)

    directories = []
    for member in members:
        cleaned = clean_path(member.filename, prefix)
        if cleaned is None:
            continue
        if not _is_directory(member.filename):
            cleaned = cleaned.parent
        if str(cleaned) != "." and cleaned not in directories:
            directories.append(cleaned)

    for directory in directories:
        for depth in range(1, len(directory.parts) + 1):
            segment = PurePosixPath(*directory.parts[:depth])
            target = destination / segment
            if target.is_dir():
                continue
            logger.debug(f"Creating {target}")
            target.mkdir()
            journal.add(JournalEntryType.DIRECTORY, segment)

    written = []
    for member in members:
        if _is_directory(member.filename):
            continue
        cleaned = clean_path(member.filename, prefix)
        if cleaned is None:
            continue
        target = destination / cleaned
        logger.debug(f"Creating {cleaned}")
        with archive.open(member) as src, open(target, "wb") as dst:
            while True:
                chunk = src.read(64 * 1024)
                if not chunk:
                    break
                dst.write(chunk)
        journal.add(JournalEntryType.FILE, cleaned)
        written.append(cleaned)

    return written
