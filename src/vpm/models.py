# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Manager Data Models

Defines data structures for package metadata, planned actions, update
results and installation journal entries.
"""

from enum import Enum, Flag
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from .constraint import RangeConstraint
from .errors import DuplicateDependencyError, InvalidPackageError
from .utils import read_json_file
from .version import MASTER, VersionNumber

# Packages depending on the framework itself list it like any other
# dependency; it is provided by the toolchain, not installed as a module.
FRAMEWORK_PACKAGE = "vibe-d"


def parse_dependencies(owner: str, dependencies: Any) -> Dict[str, RangeConstraint]:
    """
    Parse a 'dependencies' section into name -> RangeConstraint.

    Accepts a JSON object or a list of [name, range] pairs.

    Raises:
        DuplicateDependencyError: If a name is declared more than once
        InvalidPackageError: If the section has the wrong shape
    """
    if dependencies is None:
        return {}

    if isinstance(dependencies, dict):
        duplicates = getattr(dependencies, "duplicate_keys", [])
        if duplicates:
            raise DuplicateDependencyError(owner, duplicates[0])
        pairs = list(dependencies.items())
    elif isinstance(dependencies, (list, tuple)):
        pairs = []
        for item in dependencies:
            if not isinstance(item, (list, tuple)) or len(item) != 2:
                raise InvalidPackageError(f"Malformed dependency entry in '{owner}': {item!r}")
            pairs.append((item[0], item[1]))
    else:
        raise InvalidPackageError(f"'dependencies' of '{owner}' must be an object")

    seen = set()
    result = {}
    for name, expression in pairs:
        if name in seen:
            raise DuplicateDependencyError(owner, name)
        seen.add(name)
        if name == FRAMEWORK_PACKAGE:
            continue
        if not isinstance(expression, str):
            raise InvalidPackageError(f"Version range of '{name}' in '{owner}' must be a string")
        result[name] = RangeConstraint(expression)
    return result


class PackageMetadata(BaseModel):
    """
    Identity and requirements of one package, parsed from its package.json.

    Example document:
        {
            "name": "MetalCollection",
            "version": "1.0.0",
            "url": "https://github.org/...",
            "dependencies": {"black-sabbath": ">=1.0.0", "CowboysFromHell": "<1.0.0"},
            "dflags": ["-version=Metal"]
        }
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    version: VersionNumber = MASTER
    url: str = ""
    dependencies: Dict[str, RangeConstraint] = Field(default_factory=dict)
    dflags: List[str] = Field(default_factory=list)
    document: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def parse(cls, doc: Dict[str, Any]) -> "PackageMetadata":
        """
        Create PackageMetadata from a package document.

        Args:
            doc: Parsed package.json contents

        Returns:
            PackageMetadata

        Raises:
            InvalidPackageError: If name is missing or a field is malformed
            InvalidVersionFormat: If version is malformed
            InvalidRangeExpression: If a dependency range is malformed
            DuplicateDependencyError: If a dependency is declared twice
        """
        if not isinstance(doc, dict):
            raise InvalidPackageError("Package document must be an object")

        name = doc.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidPackageError("Package document has no name")

        version = MASTER
        if doc.get("version") is not None:
            version = VersionNumber(str(doc["version"]))

        dflags = doc.get("dflags") or []
        if not isinstance(dflags, list) or not all(isinstance(f, str) for f in dflags):
            raise InvalidPackageError(f"'dflags' of '{name}' must be a list of strings")

        return cls(
            name=name,
            version=version,
            url=str(doc.get("url") or ""),
            dependencies=parse_dependencies(name, doc.get("dependencies")),
            dflags=list(dflags),
            document=dict(doc)
        )

    @classmethod
    def from_file(cls, path: Path) -> "PackageMetadata":
        """Load package metadata from a package.json file"""
        return cls.parse(read_json_file(path))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a package document, keeping unknown keys of the source"""
        result = dict(self.document)
        result["name"] = self.name
        result["version"] = str(self.version)
        if self.url:
            result["url"] = self.url
        if self.dependencies:
            result["dependencies"] = {name: str(c) for name, c in self.dependencies.items()}
        if self.dflags:
            result["dflags"] = list(self.dflags)
        return result

    def info(self) -> str:
        """Human readable summary"""
        lines = [f"{self.name}, version '{self.version}'", "  Dependencies:"]
        for name, constraint in self.dependencies.items():
            lines.append(f"    {name}, version '{constraint}'")
        return "\n".join(lines)


class ActionType(str, Enum):
    """Kind of planned action"""
    INSTALL_UPDATE = "InstallUpdate"
    UNINSTALL = "Uninstall"
    CONFLICT = "Conflict"
    FAILURE = "Failure"


class Action(BaseModel):
    """One planned mutation or one reported problem"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: ActionType
    package_id: str
    constraint: RangeConstraint
    issuers: Dict[str, RangeConstraint] = Field(default_factory=dict)

    @property
    def is_problem(self) -> bool:
        return self.type in (ActionType.CONFLICT, ActionType.FAILURE)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "action": self.type.value,
            "package": self.package_id,
            "version": str(self.constraint),
            "issuers": {name: str(c) for name, c in self.issuers.items()}
        }

    def __str__(self) -> str:
        return f"{self.type.value}: {self.package_id}, {self.constraint}"


class UpdateOptions(Flag):
    """Options for PackageManager.update"""
    NONE = 0
    JUST_ANNOTATE = 1
    REINSTALL = 2


class UpdateResult(BaseModel):
    """Outcome of PackageManager.update"""
    actions: List[Action] = Field(default_factory=list)
    problems: List[Action] = Field(default_factory=list)
    performed: bool = False
    remaining: List[Action] = Field(default_factory=list)

    @property
    def up_to_date(self) -> bool:
        """True when nothing is left to do and no problem was reported"""
        if self.problems:
            return False
        if self.performed:
            return not self.remaining
        return not self.actions


class JournalEntryType(str, Enum):
    """Kind of filesystem entry created by an install"""
    FILE = "file"
    DIRECTORY = "directory"


class JournalEntry(BaseModel):
    """One file or directory created by an install, relative to the package directory"""
    model_config = ConfigDict(frozen=True)

    kind: JournalEntryType
    path: str

    @property
    def depth(self) -> int:
        return len([part for part in self.path.split("/") if part])

