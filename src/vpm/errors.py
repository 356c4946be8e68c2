# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for VPM.

All exceptions inherit from VPMError for consistent error handling.
"""

from typing import Optional, Dict, Any


class VPMError(Exception):
    """Base exception for all VPM errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize VPM error.

        Args:
            message: Human-readable error message
            details: Additional error details
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for reporting."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class InvalidVersionFormat(VPMError):
    """Version string is not 'major.minor.patch' or '~master'."""

    def __init__(self, version: str):
        super().__init__(f"Invalid version format: '{version}'", details={"version": version})
        self.version = version


class InvalidRangeExpression(VPMError):
    """Range expression could not be parsed."""

    def __init__(self, expression: str, reason: str):
        super().__init__(
            f"Invalid version range '{expression}': {reason}",
            details={"expression": expression, "reason": reason}
        )
        self.expression = expression
        self.reason = reason


class InvalidPackageError(VPMError):
    """Package document is missing required fields or has malformed ones."""
    pass


class DuplicateDependencyError(VPMError):
    """A dependency is declared more than once in one package document."""

    def __init__(self, package: str, dependency: str):
        super().__init__(
            f"The dependency '{dependency}' is specified more than once in '{package}'.",
            details={"package": package, "dependency": dependency}
        )
        self.package = package
        self.dependency = dependency


class UnresolvableDependencyError(VPMError):
    """Resolution stopped making progress while dependencies were still missing."""

    def __init__(self, missing: Dict[str, Any]):
        names = ", ".join(sorted(missing))
        super().__init__(
            f"Could not resolve dependencies: {names}",
            details={name: str(req.constraint) for name, req in missing.items()}
        )
        self.missing = missing


class ConflictError(VPMError):
    """The merged requirements for one or more packages cannot be satisfied."""

    def __init__(self, conflicts: Dict[str, Any]):
        names = ", ".join(sorted(conflicts))
        super().__init__(
            f"Conflicting version requirements for: {names}",
            details={
                name: {issuer: str(c) for issuer, c in req.issuers.items()}
                for name, req in conflicts.items()
            }
        )
        self.conflicts = conflicts


class AlreadyInstalledError(VPMError):
    """Target directory of an install already exists."""

    def __init__(self, package_id: str):
        super().__init__(
            f"{package_id} needs to be uninstalled prior installation.",
            details={"package": package_id}
        )
        self.package_id = package_id


class MissingJournalError(VPMError):
    """An installed package has no journal to drive its removal."""

    def __init__(self, package_id: str):
        super().__init__(
            f"Uninstall failed, no journal found for '{package_id}'. Please uninstall manually.",
            details={"package": package_id}
        )
        self.package_id = package_id


class AlienFilesError(VPMError):
    """Files not recorded in the journal block an uninstall."""

    def __init__(self, path: str, message: Optional[str] = None):
        super().__init__(
            message or f"Alien files found in '{path}', manual uninstallation needed.",
            details={"path": path}
        )
        self.path = path


class SupplierFetchError(VPMError):
    """A package source could not deliver metadata or an archive."""

    def __init__(self, package_id: str, reason: str):
        super().__init__(
            f"Failed to fetch package '{package_id}': {reason}",
            details={"package": package_id, "reason": reason}
        )
        self.package_id = package_id
        self.reason = reason
