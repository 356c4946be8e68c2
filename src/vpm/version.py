# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Version Numbers

A version is a "major.minor.patch" triple. Three values are special:
RELEASE (0.0.0, the lowest), HEAD (9999.9999.9999, the highest ordinary
version) and MASTER ("~master", the development head of a package).
"""

import re
from functools import total_ordering
from typing import Tuple, Union

from .errors import InvalidVersionFormat

MASTER_STRING = "~master"
MAX_VERS = 9999

# Orders above every ordinary component, so MASTER never falls inside an
# ordinary interval.
_MASTER_VERS = 2 ** 64 - 1

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


@total_ordering
class VersionNumber:
    """Immutable "major.minor.patch" version"""

    __slots__ = ("_components",)

    def __init__(self, value: Union[str, "VersionNumber", Tuple[int, int, int]]):
        if isinstance(value, VersionNumber):
            components = value._components
        elif isinstance(value, tuple):
            if len(value) != 3 or any(not isinstance(c, int) or c < 0 for c in value):
                raise InvalidVersionFormat(str(value))
            components = value
        else:
            components = self._parse_components(value)
        object.__setattr__(self, "_components", components)

    @staticmethod
    def _parse_components(value: str) -> Tuple[int, int, int]:
        if not isinstance(value, str):
            raise InvalidVersionFormat(str(value))
        if value == MASTER_STRING:
            return (_MASTER_VERS, _MASTER_VERS, _MASTER_VERS)
        match = _VERSION_RE.match(value)
        if not match:
            raise InvalidVersionFormat(value)
        return tuple(int(part) for part in match.groups())

    @classmethod
    def parse(cls, value: str) -> "VersionNumber":
        """Parse "1.2.3" or "~master"."""
        return cls(value)

    def __setattr__(self, name, value):
        raise AttributeError("VersionNumber is immutable")

    @property
    def components(self) -> Tuple[int, int, int]:
        return self._components

    @property
    def major(self) -> int:
        return self._components[0]

    @property
    def minor(self) -> int:
        return self._components[1]

    @property
    def patch(self) -> int:
        return self._components[2]

    @property
    def is_master(self) -> bool:
        return self._components[0] == _MASTER_VERS

    def __eq__(self, other) -> bool:
        if isinstance(other, str):
            try:
                other = VersionNumber(other)
            except InvalidVersionFormat:
                return False
        if not isinstance(other, VersionNumber):
            return NotImplemented
        return self._components == other._components

    def __lt__(self, other) -> bool:
        if not isinstance(other, VersionNumber):
            return NotImplemented
        return self._components < other._components

    def __hash__(self) -> int:
        return hash(self._components)

    def compare(self, other: "VersionNumber") -> int:
        """Three-way comparison: -1, 0 or 1."""
        if self._components < other._components:
            return -1
        if self._components > other._components:
            return 1
        return 0

    def __str__(self) -> str:
        if self.is_master:
            return MASTER_STRING
        return ".".join(str(c) for c in self._components)

    def __repr__(self) -> str:
        return f"VersionNumber('{self}')"


RELEASE = VersionNumber((0, 0, 0))
HEAD = VersionNumber((MAX_VERS, MAX_VERS, MAX_VERS))
MASTER = VersionNumber(MASTER_STRING)

VersionNumber.RELEASE = RELEASE
VersionNumber.HEAD = HEAD
VersionNumber.MASTER = MASTER
