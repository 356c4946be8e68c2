# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Manager

Orchestrates dependency resolution, action planning and the journaled
installation and removal of packages below <root>/modules.

Architecture:
- DependencyGraph answers needed/missing/conflicted for the known packages
- PackageSource supplies metadata and archives for missing packages
- FreshnessRecord decides when an installed copy is trusted without asking
  the source
- Journal records what an install created so uninstall removes exactly that
"""

import io
import logging
import zipfile
from pathlib import Path
from typing import Dict, List, Optional

from .archive import extract_package
from .config import VPMConfig, build_package_source
from .constraint import RangeConstraint
from .errors import (
    AlienFilesError,
    AlreadyInstalledError,
    ConflictError,
    InvalidPackageError,
    MissingJournalError,
    SupplierFetchError,
    UnresolvableDependencyError,
    VPMError,
)
from .freshness import FreshnessRecord
from .graph import DependencyGraph, RequestedDependency
from .journal import Journal
from .log import log_event
from .models import (
    Action,
    ActionType,
    JournalEntryType,
    PackageMetadata,
    UpdateOptions,
    UpdateResult,
)
from .sources import PackageSource
from .utils import is_empty_dir, read_json_file, write_json_file

logger = logging.getLogger(__name__)


class PackageManager:
    """
    Keeps the modules of one package root in line with its package.json.

    Usage:
        manager = PackageManager(Path("/abs/path/to/app"))
        result = manager.update()
        if not result.up_to_date:
            ...
    """

    def __init__(
        self,
        root: Path,
        source: Optional[PackageSource] = None,
        config: Optional[VPMConfig] = None
    ):
        """
        Initialize package manager.

        Args:
            root: Absolute path of the directory holding the root package.json
            source: Package source; built from the configuration if omitted
            config: Package manager configuration

        Raises:
            ValueError: If root is not absolute
        """
        root = Path(root)
        if not root.is_absolute():
            raise ValueError(f"Specify an absolute path for the package root, got '{root}'")

        self.root = root
        self.config = config or VPMConfig()
        self.source = source if source is not None else build_package_source(self.config, root)
        self.freshness = FreshnessRecord(root / self.config.state_file, interval=self.config.update_interval)

        self._root_package: Optional[PackageMetadata] = None
        self._installed: Dict[str, PackageMetadata] = {}
        self._module_dirs: Dict[str, Path] = {}
        self.reinit()

    @property
    def modules_path(self) -> Path:
        return self.root / self.config.modules_dir

    @property
    def root_package(self) -> Optional[PackageMetadata]:
        return self._root_package

    @property
    def package_name(self) -> Optional[str]:
        """Name from the root package.json, None if there is none"""
        return self._root_package.name if self._root_package else None

    # =========================================================================
    # Installed state
    # =========================================================================

    def reinit(self):
        """
        Re-read the root package and every installed module.

        Raises:
            InvalidPackageError: If two modules declare the same name
        """
        self._root_package = None
        self._installed = {}
        self._module_dirs = {}

        package_file = self.root / self.config.package_file
        if package_file.exists():
            self._root_package = PackageMetadata.from_file(package_file)
            if self._root_package.name in self._root_package.dependencies:
                logger.warning(f"Ignoring dependency of the application on itself: {self._root_package.name}")
        else:
            logger.debug(f"No {self.config.package_file} in {self.root}")

        if not self.modules_path.is_dir():
            return

        for module_dir in sorted(self.modules_path.iterdir()):
            if not module_dir.is_dir():
                continue
            module_file = module_dir / self.config.package_file
            try:
                package = PackageMetadata.from_file(module_file)
            except (OSError, ValueError, VPMError) as e:
                logger.warning(f"Failed to load package in {module_dir}: {e}")
                continue

            if package.name in self._installed:
                raise InvalidPackageError(
                    f"The package '{package.name}' is installed more than once.",
                    details={"package": package.name}
                )
            self._installed[package.name] = package
            self._module_dirs[package.name] = module_dir

        logger.debug(f"Found {len(self._installed)} installed packages in {self.modules_path}")

    def installed_packages(self) -> Dict[str, str]:
        """Installed packages as name -> version string"""
        return {name: str(package.version) for name, package in self._installed.items()}

    def info(self) -> str:
        """Human readable status of the root and its installed modules"""
        if self._root_package is None:
            return f"Unrecognized application in '{self.root}' (no {self.config.package_file} in this directory)"

        lines = [
            f"Status for {self.root}",
            f"Application identifier: {self._root_package.name}",
            self._root_package.info(),
            "Installed modules:",
        ]
        for name in sorted(self._installed):
            lines.append(self._installed[name].info())
        return "\n".join(lines)

    @property
    def dflags(self) -> List[str]:
        """Compiler flags the application and its modules need"""
        flags: List[str] = []
        if self._root_package:
            flags.extend(self._root_package.dflags)
        flags.extend(["-Isource", "-Jviews"])

        for name in sorted(self._installed):
            flags.extend(self._installed[name].dflags)
            module_dir = self._module_dirs[name]
            relative = module_dir.relative_to(self.root).as_posix()
            if (module_dir / "source").exists():
                flags.append(f"-I{relative}/source")
            if (module_dir / "views").exists():
                flags.append(f"-J{relative}/views")
        return flags

    # =========================================================================
    # Resolution
    # =========================================================================

    def _fetch(self, name: str, constraint: RangeConstraint) -> Optional[PackageMetadata]:
        """Installed copy if it is fresh and matches, else the source's best match"""
        installed = self._installed.get(name)
        usable = installed is not None and constraint.matches(installed.version)

        if usable and not self.freshness.needs_check(name):
            logger.debug(f"Using installed {name} {installed.version}")
            return installed

        try:
            package = self.source.package_json(name, constraint)
        except SupplierFetchError as e:
            logger.error(f"Getting package metadata for {name} failed: {e.reason}")
            if usable:
                logger.info(f"Falling back to installed {name} {installed.version}")
                return installed
            return None

        if package.name != name:
            logger.error(f"Package source returned '{package.name}' when asked for '{name}'")
            return None

        self.freshness.mark_up_to_date(name)
        return package

    def _resolve_graph(self) -> DependencyGraph:
        graph = DependencyGraph(self._root_package)
        history = []

        while True:
            missing = graph.missing()
            if not missing:
                break

            fetchable = {name: req for name, req in missing.items() if req.constraint.valid()}
            if not fetchable:
                # only conflicts left, nothing could ever match them
                break

            snapshot = {name: req.constraint for name, req in missing.items()}
            if snapshot in history:
                # candidates keep replacing each other without progress
                conflicts = graph.conflicted()
                if conflicts:
                    raise ConflictError(conflicts)
                raise UnresolvableDependencyError(missing)
            history.append(snapshot)

            for name, requested in fetchable.items():
                logger.debug(f"Resolving {name}, '{requested.constraint}'")
                package = self._fetch(name, requested.constraint)
                if package is not None:
                    graph.insert(package)

            graph.clear_unused()

        graph.clear_unused()
        conflicts = graph.conflicted()
        if conflicts:
            raise ConflictError(conflicts)
        return graph

    def resolve(self) -> Optional[DependencyGraph]:
        """
        Resolve the root package's dependencies to a fixed point.

        Returns:
            Resolved graph, None without a root package

        Raises:
            UnresolvableDependencyError: If missing dependencies stop changing
            ConflictError: If merged requirements cannot be satisfied
        """
        if self._root_package is None:
            return None
        self.freshness.load()
        try:
            return self._resolve_graph()
        finally:
            self.freshness.save()

    def _problem_actions(self, action_type: ActionType, requirements: Dict[str, RequestedDependency]) -> List[Action]:
        return [
            Action(type=action_type, package_id=name, constraint=req.constraint, issuers=dict(req.issuers))
            for name, req in sorted(requirements.items())
        ]

    def actions(self, options: UpdateOptions = UpdateOptions.NONE) -> List[Action]:
        """
        Plan the actions that bring the installed modules in line.

        Resolution problems are reported as Failure or Conflict actions, with
        no other actions next to them. Uninstall actions come before all
        InstallUpdate actions.

        Args:
            options: UpdateOptions.REINSTALL also reinstalls satisfied packages

        Returns:
            Planned actions, empty when up to date
        """
        try:
            graph = self.resolve()
        except UnresolvableDependencyError as e:
            logger.error("The dependency graph could not be filled.")
            return self._problem_actions(ActionType.FAILURE, e.missing)
        except ConflictError as e:
            logger.debug("Conflicts found")
            return self._problem_actions(ActionType.CONFLICT, e.conflicts)

        if graph is None:
            return []

        unused = {name: package for name, package in self._installed.items() if name != graph.root.name}
        uninstalls: List[Action] = []
        installs: List[Action] = []

        for name, requested in sorted(graph.needed().items()):
            installed = self._installed.get(name)
            if installed is None or not (installed.version.is_master or requested.constraint.matches(installed.version)):
                if installed is None:
                    logger.debug(f"Application not complete, required package '{name}' was not found.")
                else:
                    logger.debug(
                        f"Application not complete, required package '{name}' has invalid version. "
                        f"Required '{requested.constraint}', available '{installed.version}'."
                    )
                installs.append(Action(
                    type=ActionType.INSTALL_UPDATE,
                    package_id=name,
                    constraint=requested.constraint,
                    issuers=dict(requested.issuers)
                ))
                continue

            logger.debug(f"Required package '{name}' found with version '{installed.version}'")
            if options & UpdateOptions.REINSTALL:
                uninstalls.append(Action(
                    type=ActionType.UNINSTALL,
                    package_id=name,
                    constraint=RangeConstraint.exactly(installed.version)
                ))
                installs.append(Action(
                    type=ActionType.INSTALL_UPDATE,
                    package_id=name,
                    constraint=requested.constraint,
                    issuers=dict(requested.issuers)
                ))
            unused.pop(name, None)

        for name, package in sorted(unused.items()):
            logger.debug(f"Superfluous package found: '{name}', version '{package.version}'")
            uninstalls.append(Action(
                type=ActionType.UNINSTALL,
                package_id=name,
                constraint=RangeConstraint.exactly(package.version)
            ))

        return uninstalls + installs

    def update(self, options: UpdateOptions = UpdateOptions.NONE) -> UpdateResult:
        """
        Perform the planned installs and uninstalls.

        Nothing is changed if a Conflict or Failure was planned, or when
        options contain JUST_ANNOTATE.

        Returns:
            UpdateResult with the planned, problematic and remaining actions
        """
        planned = self.actions(options)
        result = UpdateResult(actions=planned, problems=[a for a in planned if a.is_problem])
        if not planned:
            logger.info("You are up to date")
            return result

        logger.info("The following changes could be performed:")
        for action in planned:
            logger.info(str(action))
            if action.is_problem:
                logger.info("Issued by: ")
                for issuer, constraint in action.issuers.items():
                    logger.info(f" {issuer}: {constraint}")

        if result.problems or options & UpdateOptions.JUST_ANNOTATE:
            return result

        for action in planned:
            if action.type == ActionType.UNINSTALL:
                self.uninstall(action.package_id)
        for action in planned:
            if action.type == ActionType.INSTALL_UPDATE:
                self.install(action.package_id, action.constraint)

        self.reinit()
        result.performed = True
        result.remaining = self.actions(UpdateOptions.NONE)
        if result.remaining:
            logger.info("There are still some actions to perform:")
            for action in result.remaining:
                logger.info(str(action))
        else:
            logger.info("You are up to date")
        return result

    # =========================================================================
    # Install / uninstall
    # =========================================================================

    def _download(self, package_id: str, constraint: RangeConstraint) -> io.BytesIO:
        downloads = self.root / self.config.downloads_dir
        downloads.mkdir(parents=True, exist_ok=True)
        temp_file = downloads / f"{package_id}.zip"
        temp_file.unlink(missing_ok=True)

        logger.debug("Acquiring package zip file")
        try:
            self.source.store_package(temp_file, package_id, constraint)
            return io.BytesIO(temp_file.read_bytes())
        finally:
            temp_file.unlink(missing_ok=True)

    def install(self, package_id: str, constraint: RangeConstraint) -> PackageMetadata:
        """
        Install the best package matching constraint into modules/<package_id>.

        Args:
            package_id: Package name
            constraint: Acceptable versions

        Returns:
            Metadata of the installed package

        Raises:
            AlreadyInstalledError: If the module directory already exists
            SupplierFetchError: If the source cannot deliver the package
        """
        logger.info(f"Installing {package_id}...")
        destination = self.modules_path / package_id
        if destination.exists():
            raise AlreadyInstalledError(package_id)

        metadata = self.source.package_json(package_id, constraint)
        data = self._download(package_id, constraint)

        journal = Journal()
        try:
            with zipfile.ZipFile(data) as archive:
                extract_package(archive, destination, journal)
        except zipfile.BadZipFile as e:
            raise SupplierFetchError(package_id, f"archive is not a valid zip file: {e}") from e

        # the archive's own package.json may carry a stale or generic version
        package_file = destination / self.config.package_file
        if package_file.exists():
            document = read_json_file(package_file)
            document["version"] = str(metadata.version)
        else:
            document = metadata.to_dict()
            journal.add(JournalEntryType.FILE, self.config.package_file)
        write_json_file(package_file, document)

        journal.add(JournalEntryType.FILE, self.config.journal_file)
        journal.save(destination / self.config.journal_file)

        installed = PackageMetadata.parse(document)
        self._installed[installed.name] = installed
        self._module_dirs[installed.name] = destination
        log_event(logger, "package_installed", package=package_id, version=str(metadata.version), path=str(destination))
        return installed

    def uninstall(self, package_id: str):
        """
        Remove exactly what the install journal of package_id lists.

        Raises:
            MissingJournalError: If the module has no journal
            AlienFilesError: If files not created by the install are in the way
        """
        logger.info(f"Uninstalling {package_id}")
        directory = self.modules_path / package_id
        journal_file = directory / self.config.journal_file
        if not journal_file.exists():
            raise MissingJournalError(package_id)

        journal = Journal.load(journal_file)
        logger.debug("Erasing files")
        for entry in journal.files():
            path = directory / entry.path
            if not path.exists():
                logger.warning(f"Deleting file '{path}' failed: missing")
                continue
            if path.is_dir():
                raise AlienFilesError(str(path), f"Expected a file but found a directory at '{path}'.")
            logger.debug(f"Deleting file '{path}'")
            path.unlink()

        # journals written without an entry for themselves
        journal_file.unlink(missing_ok=True)

        logger.debug("Erasing directories")
        for entry in journal.directories():
            path = directory / entry.path
            if not path.exists():
                logger.warning(f"Deleting directory '{path}' failed: missing")
                continue
            if not path.is_dir() or not is_empty_dir(path):
                raise AlienFilesError(str(path))
            logger.debug(f"Deleting directory '{path}'")
            path.rmdir()

        if not is_empty_dir(directory):
            raise AlienFilesError(str(directory))
        directory.rmdir()

        for name, module_dir in list(self._module_dirs.items()):
            if module_dir == directory:
                del self._module_dirs[name]
                self._installed.pop(name, None)
        log_event(logger, "package_uninstalled", package=package_id, path=str(directory))
