# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
VPM Configuration - Single source of truth.
YAML is king. Env vars only override the registry URL and log level.

Package sources live in an INI-style registries.conf next to the root
package, one section per source.
"""

import configparser
import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel

from .sources import (
    ChainedPackageSource,
    FileSystemPackageSource,
    PackageSource,
    RegistryPackageSource,
)

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = "http://registry.vibed.org/"


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class VPMConfig:
    """
    Immutable package manager configuration.
    Relative paths are resolved against the package root.
    """

    # -- Layout --
    modules_dir: str = "modules"
    downloads_dir: str = "temp/downloads"
    package_file: str = "package.json"
    journal_file: str = "journal.json"
    state_file: str = "vpm.json"

    # -- Resolution --
    update_interval_hours: float = 24

    # -- Sources --
    registry_url: str = DEFAULT_REGISTRY_URL
    request_timeout: float = 30.0
    sources_file: str = "registries.conf"
    gpgcheck: bool = False
    keyring_dir: Optional[str] = None

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "text"

    @property
    def update_interval(self) -> timedelta:
        return timedelta(hours=self.update_interval_hours)


def load_config(path: Optional[str] = None) -> VPMConfig:
    """
    Load configuration from YAML.
    Returns defaults if file doesn't exist.
    """
    y = {}
    if path and Path(path).exists():
        with open(path) as f:
            y = yaml.safe_load(f) or {}
    elif path:
        logger.info(f"Config not found at {path}, using defaults")

    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    defaults = VPMConfig()
    return VPMConfig(
        modules_dir=get(y, "paths", "modules") or defaults.modules_dir,
        downloads_dir=get(y, "paths", "downloads") or defaults.downloads_dir,
        package_file=get(y, "paths", "package_file") or defaults.package_file,
        journal_file=get(y, "paths", "journal_file") or defaults.journal_file,
        state_file=get(y, "paths", "state_file") or defaults.state_file,
        update_interval_hours=get(y, "resolution", "update_interval_hours", default=defaults.update_interval_hours),
        registry_url=os.getenv("VPM_REGISTRY_URL") or get(y, "registry", "url") or defaults.registry_url,
        request_timeout=get(y, "registry", "timeout") or defaults.request_timeout,
        sources_file=get(y, "paths", "sources_file") or defaults.sources_file,
        gpgcheck=bool(get(y, "signing", "gpgcheck", default=False)),
        keyring_dir=get(y, "signing", "keyring_dir"),
        log_level=os.getenv("VPM_LOG_LEVEL") or get(y, "logging", "level") or defaults.log_level,
        log_format=get(y, "logging", "format") or defaults.log_format,
    )


# =============================================================================
# PACKAGE SOURCES
# =============================================================================

class SourceConfig(BaseModel):
    """One package source section of registries.conf"""
    name: str
    type: str = "registry"
    url: Optional[str] = None
    path: Optional[str] = None
    enabled: bool = True
    priority: int = 50
    gpgcheck: bool = False
    keyring_dir: Optional[str] = None


class SourceConfigLoader:
    """
    Loads package source configurations from INI-style registries.conf

    Example:
        [local]
        type = filesystem
        path = ./packages
        priority = 10

        [public]
        type = registry
        url = http://registry.vibed.org/
        gpgcheck = true
    """

    def __init__(self, config_path: Path):
        """
        Initialize configuration loader.

        Args:
            config_path: Path to registries.conf file
        """
        self.config_path = Path(config_path)

    def load(self) -> Dict[str, SourceConfig]:
        """
        Load source configurations from registries.conf

        Returns:
            Dictionary of source configs keyed by section name
        """
        sources = {}

        if not self.config_path.exists():
            logger.debug(f"No {self.config_path.name} found at {self.config_path}")
            return sources

        config = configparser.ConfigParser()
        config.read(self.config_path)

        for section in config.sections():
            try:
                source = SourceConfig(
                    name=section,
                    type=config.get(section, "type", fallback="registry"),
                    url=config.get(section, "url", fallback=None),
                    path=config.get(section, "path", fallback=None),
                    enabled=config.getboolean(section, "enabled", fallback=True),
                    priority=config.getint(section, "priority", fallback=50),
                    gpgcheck=config.getboolean(section, "gpgcheck", fallback=False),
                    keyring_dir=config.get(section, "keyring_dir", fallback=None),
                )
            except ValueError as e:
                logger.error(f"Failed to load package source {section}: {e}")
                continue
            if source.type not in ("registry", "filesystem"):
                logger.error(f"Unknown package source type '{source.type}' in section {section}")
                continue
            sources[section] = source
            logger.debug(f"Loaded package source: {section} ({source.url or source.path})")

        return sources


def _resolve(root: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path


def _create_source(source: SourceConfig, config: VPMConfig, root: Path) -> Optional[PackageSource]:
    keyring = source.keyring_dir or config.keyring_dir
    keyring_dir = _resolve(root, keyring) if keyring else None
    gpgcheck = source.gpgcheck or config.gpgcheck

    if source.type == "filesystem":
        if not source.path:
            logger.error(f"Package source {source.name} has no path")
            return None
        return FileSystemPackageSource(
            _resolve(root, source.path), gpgcheck=gpgcheck, keyring_dir=keyring_dir, name=source.name
        )

    if not source.url:
        logger.error(f"Package source {source.name} has no url")
        return None
    return RegistryPackageSource(
        source.url,
        timeout=config.request_timeout,
        gpgcheck=gpgcheck,
        keyring_dir=keyring_dir,
        name=source.name
    )


def build_package_source(config: VPMConfig, root: Path) -> PackageSource:
    """
    Build the package source for a root directory.

    Enabled sections of registries.conf are chained by ascending priority.
    Without any usable section the default registry is used.

    Args:
        config: Package manager configuration
        root: Package root directory

    Returns:
        Package source to resolve against
    """
    root = Path(root)
    loaded = SourceConfigLoader(_resolve(root, config.sources_file)).load()

    sources: List[PackageSource] = []
    for source in sorted(loaded.values(), key=lambda s: s.priority):
        if not source.enabled:
            logger.debug(f"Skipping disabled package source {source.name}")
            continue
        created = _create_source(source, config, root)
        if created is not None:
            sources.append(created)

    if not sources:
        default = SourceConfig(name="default", type="registry", url=config.registry_url)
        sources.append(_create_source(default, config, root))

    if len(sources) == 1:
        return sources[0]
    return ChainedPackageSource(sources)
