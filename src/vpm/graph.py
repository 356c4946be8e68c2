# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Dependency Graph

Single responsibility: hold the root package plus the currently known
candidate packages and answer which requirements are needed, missing or
conflicting. The graph never fetches anything itself.
"""

import logging
from typing import Callable, Dict, Optional

from .constraint import RangeConstraint
from .models import PackageMetadata

logger = logging.getLogger(__name__)

Visitor = Callable[[Optional[PackageMetadata], str, RangeConstraint, PackageMetadata], None]


class RequestedDependency:
    """Merged requirement for one package plus the constraint each issuer asked for"""

    def __init__(self, issuer: str, constraint: RangeConstraint):
        self.constraint = constraint
        self.issuers: Dict[str, RangeConstraint] = {issuer: constraint}

    def add(self, issuer: str, constraint: RangeConstraint):
        """
        Intersect another issuer's constraint into this requirement.

        An empty intersection stays empty, and an invalid declaration makes
        the whole requirement invalid.
        """
        if not constraint.valid():
            self.constraint = constraint
        elif self.constraint.valid():
            self.constraint = self.constraint.merge(constraint)
        self.issuers[issuer] = constraint

    def __eq__(self, other) -> bool:
        if not isinstance(other, RequestedDependency):
            return NotImplemented
        return self.constraint == other.constraint and self.issuers == other.issuers

    def __repr__(self) -> str:
        return f"RequestedDependency({self.constraint!s}, issuers={sorted(self.issuers)})"


class DependencyGraph:
    """Root package plus candidate metadata, at most one entry per name"""

    def __init__(self, root: PackageMetadata):
        """
        Initialize dependency graph.

        Args:
            root: Package whose requirements are being resolved
        """
        self._root = root
        self._packages: Dict[str, PackageMetadata] = {root.name: root}

    @property
    def root(self) -> PackageMetadata:
        return self._root

    @property
    def packages(self) -> Dict[str, PackageMetadata]:
        """Snapshot of all packages in the graph, root included"""
        return dict(self._packages)

    def get(self, name: str) -> Optional[PackageMetadata]:
        return self._packages.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._packages

    def __len__(self) -> int:
        return len(self._packages)

    def insert(self, package: PackageMetadata):
        """
        Add or replace the candidate for package.name.

        Raises:
            ValueError: If package has the root's name
        """
        if package.name == self._root.name:
            raise ValueError(f"Cannot replace the root package '{package.name}'")
        self._packages[package.name] = package

    def remove(self, package: PackageMetadata):
        """
        Remove the candidate for package.name if present.

        Raises:
            ValueError: If package has the root's name
        """
        if package.name == self._root.name:
            raise ValueError(f"Cannot remove the root package '{package.name}'")
        self._packages.pop(package.name, None)

    def for_all_dependencies(self, visit: Visitor):
        """
        Call visit(candidate, name, constraint, issuer) for every dependency edge.

        candidate is the graph's entry for name, or None if there is none.
        Edges pointing at the root package are skipped.
        """
        for issuer in list(self._packages.values()):
            for name, constraint in issuer.dependencies.items():
                if name == self._root.name:
                    continue
                visit(self._packages.get(name), name, constraint, issuer)

    @staticmethod
    def _add(
        deps: Dict[str, RequestedDependency],
        name: str,
        constraint: RangeConstraint,
        issuer: PackageMetadata
    ):
        logger.debug(f"addDependency {name}, '{constraint}' (issued by {issuer.name})")
        requested = deps.get(name)
        if requested is None:
            deps[name] = RequestedDependency(issuer.name, constraint)
        else:
            requested.add(issuer.name, constraint)

    def needed(self) -> Dict[str, RequestedDependency]:
        """Merged requirement for every dependency name, satisfied or not"""
        deps: Dict[str, RequestedDependency] = {}

        def visit(candidate, name, constraint, issuer):
            self._add(deps, name, constraint, issuer)

        self.for_all_dependencies(visit)
        return deps

    def missing(self) -> Dict[str, RequestedDependency]:
        """Requirements without a candidate, or whose candidate does not match"""
        deps: Dict[str, RequestedDependency] = {}

        def visit(candidate, name, constraint, issuer):
            if candidate is None or not constraint.matches(candidate.version):
                self._add(deps, name, constraint, issuer)

        self.for_all_dependencies(visit)
        return deps

    def conflicted(self) -> Dict[str, RequestedDependency]:
        """Requirements whose merged constraint cannot be satisfied by any version"""
        return {
            name: requested
            for name, requested in self.needed().items()
            if not requested.constraint.valid()
        }

    def clear_unused(self):
        """Drop candidates that no single dependency edge accepts"""
        unused = set(self._packages)
        unused.discard(self._root.name)

        def visit(candidate, name, constraint, issuer):
            if candidate is not None and constraint.matches(candidate.version):
                unused.discard(name)

        self.for_all_dependencies(visit)
        for name in sorted(unused):
            logger.debug(f"Removed unused package: {name}")
            del self._packages[name]
