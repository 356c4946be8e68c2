# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Sources

Supply the best package version available for a name and version range:
its metadata and a downloadable zip archive. The resolver and installer only
talk to the PackageSource interface.

Handles:
- Local directories of '<name>_<version>.zip' archives
- Remote registries serving 'packages/<name>.json' over HTTP
- Priority ordered chains of the above
- Optional detached GPG signature checks of archives
"""

import glob
import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from src.signing import gpg

from .constraint import RangeConstraint
from .errors import InvalidVersionFormat, SupplierFetchError
from .models import PackageMetadata
from .utils import json_from_zip
from .version import VersionNumber

logger = logging.getLogger(__name__)


class PackageSource(ABC):
    """Supplies the latest available package version matching a constraint"""

    name: str = "source"

    @abstractmethod
    def store_package(self, dest_path: Path, package_id: str, constraint: RangeConstraint):
        """
        Write the package archive to dest_path.

        Raises:
            SupplierFetchError: If no matching archive can be delivered
        """

    @abstractmethod
    def package_json(self, package_id: str, constraint: RangeConstraint) -> PackageMetadata:
        """
        Metadata of the best version matching constraint.

        Raises:
            SupplierFetchError: If no matching package exists
        """

    def close(self):
        """Release resources held by the source"""


def check_signature(package_id: str, archive: Path, signature: Path, keyring_dir: Optional[Path]):
    """
    Verify the detached signature of a downloaded archive.

    Raises:
        SupplierFetchError: If the signature is missing, invalid or GPG is unavailable
    """
    try:
        is_valid, error_msg = gpg.verify_signature(
            filepath=str(archive),
            signature_path=str(signature),
            keyring_dir=str(keyring_dir) if keyring_dir else None
        )
    except (FileNotFoundError, gpg.GPGNotFoundError) as e:
        raise SupplierFetchError(package_id, f"signature check failed: {e}") from e

    if not is_valid:
        raise SupplierFetchError(package_id, f"invalid signature: {error_msg}")
    logger.debug(f"Signature of {archive.name} verified")


class FileSystemPackageSource(PackageSource):
    """Directory of pre-built archives named '<name>_<version>.zip'"""

    def __init__(
        self,
        path: Path,
        gpgcheck: bool = False,
        keyring_dir: Optional[Path] = None,
        name: str = "local"
    ):
        """
        Initialize filesystem source.

        Args:
            path: Directory containing the archives
            gpgcheck: Require a valid '<archive>.asc' signature
            keyring_dir: GPG keyring holding trusted publisher keys
            name: Name used in log messages
        """
        self.path = Path(path)
        self.gpgcheck = gpgcheck
        self.keyring_dir = keyring_dir
        self.name = name

    def best_package_file(self, package_id: str, constraint: RangeConstraint) -> Tuple[Path, VersionNumber]:
        """
        Find the archive with the highest version matching constraint.

        Raises:
            SupplierFetchError: If no archive matches
        """
        prefix = f"{package_id}_"
        best: Optional[Tuple[Path, VersionNumber]] = None
        for entry in self.path.glob(f"{glob.escape(prefix)}*.zip"):
            version_text = entry.name[len(prefix):-len(".zip")]
            try:
                version = VersionNumber(version_text)
            except InvalidVersionFormat:
                logger.debug(f"Ignoring archive with unparsable version: {entry.name}")
                continue
            if constraint.matches(version) and (best is None or version > best[1]):
                best = (entry, version)

        if best is None:
            raise SupplierFetchError(package_id, f"no matching package found in {self.path} for '{constraint}'")

        logger.debug(f"Found best matching package: '{best[0]}'")
        return best

    def store_package(self, dest_path: Path, package_id: str, constraint: RangeConstraint):
        logger.info(f"Storing package '{package_id}', version requirements: {constraint}")
        filename, _ = self.best_package_file(package_id, constraint)
        if self.gpgcheck:
            check_signature(package_id, filename, gpg.signature_path_for(filename), self.keyring_dir)
        shutil.copyfile(filename, dest_path)

    def package_json(self, package_id: str, constraint: RangeConstraint) -> PackageMetadata:
        filename, version = self.best_package_file(package_id, constraint)
        try:
            doc = json_from_zip(filename, "package.json")
        except (OSError, ValueError) as e:
            raise SupplierFetchError(package_id, f"cannot read package.json from {filename.name}: {e}") from e

        # the file name carries the authoritative version
        doc["version"] = str(version)
        return PackageMetadata.parse(doc)


class RegistryPackageSource(PackageSource):
    """
    Remote package registry.

    GET <url>/packages/<name>.json returns
        {"name": ..., "versions": [{<package.json fields>, "downloadUrl": ...}, ...]}
    """

    def __init__(
        self,
        url: str,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
        gpgcheck: bool = False,
        keyring_dir: Optional[Path] = None,
        name: str = "registry"
    ):
        """
        Initialize registry source.

        Args:
            url: Registry base URL
            client: Optional preconfigured HTTP client
            timeout: Request timeout in seconds
            gpgcheck: Require a valid '<downloadUrl>.asc' signature
            keyring_dir: GPG keyring holding trusted publisher keys
            name: Name used in log messages
        """
        self.url = url.rstrip("/") + "/"
        self.client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        self.gpgcheck = gpgcheck
        self.keyring_dir = keyring_dir
        self.name = name
        self._cache: Dict[str, Dict[str, Any]] = {}

    def _package_info(self, package_id: str) -> Dict[str, Any]:
        if package_id in self._cache:
            return self._cache[package_id]

        url = f"{self.url}packages/{quote(package_id)}.json"
        logger.debug(f"Fetching {url}")
        try:
            response = self.client.get(url)
            response.raise_for_status()
            info = response.json()
        except httpx.HTTPError as e:
            raise SupplierFetchError(package_id, f"registry request failed: {e}") from e
        except ValueError as e:
            raise SupplierFetchError(package_id, f"registry returned invalid JSON: {e}") from e

        if not isinstance(info, dict) or not isinstance(info.get("versions"), list):
            raise SupplierFetchError(package_id, "registry returned no version list")

        self._cache[package_id] = info
        return info

    def best_version(self, package_id: str, constraint: RangeConstraint) -> Dict[str, Any]:
        """
        Registry entry with the highest version matching constraint.

        Raises:
            SupplierFetchError: If no version matches
        """
        best = None
        best_version = None
        for entry in self._package_info(package_id)["versions"]:
            if not isinstance(entry, dict):
                continue
            try:
                version = VersionNumber(str(entry.get("version")))
            except InvalidVersionFormat:
                continue
            if constraint.matches(version) and (best_version is None or version > best_version):
                best, best_version = entry, version

        if best is None:
            raise SupplierFetchError(package_id, f"no version matching '{constraint}' in {self.name}")
        return best

    def package_json(self, package_id: str, constraint: RangeConstraint) -> PackageMetadata:
        doc = {k: v for k, v in self.best_version(package_id, constraint).items() if k != "downloadUrl"}
        doc.setdefault("name", package_id)
        return PackageMetadata.parse(doc)

    def _download(self, package_id: str, url: str, dest_path: Path):
        try:
            with self.client.stream("GET", url) as response:
                response.raise_for_status()
                with open(dest_path, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        except httpx.HTTPError as e:
            raise SupplierFetchError(package_id, f"download of {url} failed: {e}") from e

    def store_package(self, dest_path: Path, package_id: str, constraint: RangeConstraint):
        entry = self.best_version(package_id, constraint)
        version = entry["version"]
        url = entry.get("downloadUrl") or f"{self.url}packages/{quote(package_id)}/{version}.zip"
        logger.info(f"Downloading {package_id} {version} from {self.name}")
        self._download(package_id, url, Path(dest_path))

        if self.gpgcheck:
            signature = gpg.signature_path_for(Path(dest_path))
            self._download(package_id, url + ".asc", signature)
            try:
                check_signature(package_id, Path(dest_path), signature, self.keyring_dir)
            finally:
                signature.unlink(missing_ok=True)

    def close(self):
        """Close HTTP client"""
        self.client.close()


class ChainedPackageSource(PackageSource):
    """Tries several sources in priority order; the first success wins"""

    def __init__(self, sources: List[PackageSource], name: str = "chain"):
        self.sources = list(sources)
        self.name = name
        self._served: Dict[Tuple[str, RangeConstraint], PackageSource] = {}

    def _ordered(self, package_id: str, constraint: RangeConstraint) -> List[PackageSource]:
        first = self._served.get((package_id, constraint))
        if first is None:
            return self.sources
        return [first] + [s for s in self.sources if s is not first]

    def package_json(self, package_id: str, constraint: RangeConstraint) -> PackageMetadata:
        errors = []
        for source in self._ordered(package_id, constraint):
            try:
                metadata = source.package_json(package_id, constraint)
            except SupplierFetchError as e:
                logger.debug(f"{source.name}: {e.reason}")
                errors.append(f"{source.name}: {e.reason}")
                continue
            self._served[(package_id, constraint)] = source
            return metadata
        raise SupplierFetchError(package_id, "; ".join(errors) or "no package sources configured")

    def store_package(self, dest_path: Path, package_id: str, constraint: RangeConstraint):
        errors = []
        for source in self._ordered(package_id, constraint):
            try:
                source.store_package(dest_path, package_id, constraint)
                return
            except SupplierFetchError as e:
                logger.debug(f"{source.name}: {e.reason}")
                errors.append(f"{source.name}: {e.reason}")
        raise SupplierFetchError(package_id, "; ".join(errors) or "no package sources configured")

    def close(self):
        for source in self.sources:
            source.close()
