# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Fixtures for the package manager tests

Provides package roots, archive builders and package sources backed by
pytest's tmp_path.
"""

import json
import os
import sys
import zipfile
from pathlib import Path
from typing import Dict, Optional

import pytest

# Add repository root to path so 'src.vpm' imports resolve
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from src.vpm.config import VPMConfig
from src.vpm.sources import FileSystemPackageSource


def write_package_json(directory: Path, document: Dict) -> Path:
    """Write package.json into directory (created if missing)"""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    path.write_text(json.dumps(document, indent=2))
    return path


def build_archive(path: Path, files: Dict[str, str], prefix: str = "", directories=()) -> Path:
    """
    Create a zip archive.

    Args:
        path: Archive to write
        files: member name -> text content, relative to prefix
        prefix: Top level folder inside the archive, e.g. 'pkg-1.0.0/'
        directories: Explicit directory members, relative to prefix
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        if prefix:
            archive.writestr(prefix, "")
        for directory in directories:
            archive.writestr(prefix + directory.rstrip("/") + "/", "")
        for name, content in files.items():
            archive.writestr(prefix + name, content)
    return path


@pytest.fixture
def app_root(tmp_path):
    """Application root with an empty package.json"""
    root = tmp_path / "app"
    write_package_json(root, {"name": "app", "version": "1.0.0", "dependencies": {}})
    return root


@pytest.fixture
def package_dir(tmp_path):
    """Directory for '<name>_<version>.zip' archives"""
    directory = tmp_path / "packages"
    directory.mkdir()
    return directory


@pytest.fixture
def publish(package_dir):
    """
    Publish a package archive into package_dir.

    Usage:
        publish("lib", "1.0.0", dependencies={"other": ">=1.0.0"})
    """
    def _publish(
        name: str,
        version: str,
        dependencies: Optional[Dict[str, str]] = None,
        files: Optional[Dict[str, str]] = None,
        prefix: str = "",
        dflags=None
    ) -> Path:
        document = {"name": name, "version": "0.0.0", "dependencies": dependencies or {}}
        if dflags:
            document["dflags"] = dflags
        members = {"package.json": json.dumps(document)}
        members.update(files or {"source/" + name.replace("-", "_") + ".d": "module " + name + ";"})
        return build_archive(package_dir / f"{name}_{version}.zip", members, prefix=prefix)

    return _publish


@pytest.fixture
def fs_source(package_dir):
    """FileSystemPackageSource over package_dir"""
    return FileSystemPackageSource(package_dir)


@pytest.fixture
def config():
    """Default configuration"""
    return VPMConfig()


def snapshot_tree(root: Path) -> Dict[str, Optional[bytes]]:
    """Relative path -> file content (None for directories) below root"""
    result = {}
    for path in sorted(root.rglob("*")):
        key = path.relative_to(root).as_posix()
        result[key] = None if path.is_dir() else path.read_bytes()
    return result


@pytest.fixture
def make_archive():
    """build_archive as a fixture"""
    return build_archive


@pytest.fixture
def make_package_json():
    """write_package_json as a fixture"""
    return write_package_json


@pytest.fixture
def tree():
    """snapshot_tree as a fixture"""
    return snapshot_tree
