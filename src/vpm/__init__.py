# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
VPM - Package Dependency Manager

Resolves version range constraints across a package graph and keeps the
modules/ directory of an application in line with its package.json:
- Each module does one thing well
- Modules compose to form complete system
- Plain JSON on disk throughout (package.json, journal.json, vpm.json)
"""

from .config import VPMConfig, load_config, build_package_source
from .constraint import RangeConstraint
from .errors import VPMError
from .graph import DependencyGraph, RequestedDependency
from .journal import Journal
from .manager import PackageManager
from .models import Action, ActionType, PackageMetadata, UpdateOptions, UpdateResult
from .sources import (
    ChainedPackageSource,
    FileSystemPackageSource,
    PackageSource,
    RegistryPackageSource,
)
from .version import VersionNumber

__all__ = [
    "VPMConfig",
    "load_config",
    "build_package_source",
    "RangeConstraint",
    "VPMError",
    "DependencyGraph",
    "RequestedDependency",
    "Journal",
    "PackageManager",
    "Action",
    "ActionType",
    "PackageMetadata",
    "UpdateOptions",
    "UpdateResult",
    "PackageSource",
    "FileSystemPackageSource",
    "RegistryPackageSource",
    "ChainedPackageSource",
    "VersionNumber",
]
