# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
vpm command line

    vpm [--root DIR] [--config FILE] [--source-dir DIR] [--registry URL] COMMAND

Commands:
    update [--annotate] [--reinstall]   bring modules/ in line with package.json
    list                                show the application and its modules
    flags                               print the compiler flags, one per line
    install NAME [RANGE]                install one package
    uninstall NAME                      remove one package using its journal
    trust-key KEYFILE                   import a publisher key for signature checks

Exit codes: 0 success / up to date, 1 actions remain or failed, 2 on errors.
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from src.signing import gpg

from .config import VPMConfig, load_config
from .constraint import RangeConstraint
from .errors import VPMError
from .log import configure_logging
from .manager import PackageManager
from .models import UpdateOptions
from .sources import FileSystemPackageSource, RegistryPackageSource


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vpm", description="Package dependency manager")
    parser.add_argument("--root", default=".", help="Application root holding package.json (default: .)")
    parser.add_argument("--config", default=None, help="YAML configuration file")
    parser.add_argument("--source-dir", default=None, help="Install from a directory of <name>_<version>.zip archives")
    parser.add_argument("--registry", default=None, help="Registry URL to install from")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    update = commands.add_parser("update", help="Install and uninstall packages as needed")
    update.add_argument("--annotate", action="store_true", help="Only show the planned actions")
    update.add_argument("--reinstall", action="store_true", help="Reinstall packages that are up to date")

    commands.add_parser("list", help="Show the application and its installed modules")
    commands.add_parser("flags", help="Print compiler flags")

    install = commands.add_parser("install", help="Install a package")
    install.add_argument("name")
    install.add_argument("range", nargs="?", default=">=0.0.0", help="Version range (default: any)")

    uninstall = commands.add_parser("uninstall", help="Uninstall a package")
    uninstall.add_argument("name")

    trust_key = commands.add_parser("trust-key", help="Import a publisher public key into the keyring")
    trust_key.add_argument("key_file", help="ASCII-armored public key file")

    return parser


def _load_config(args) -> VPMConfig:
    config = load_config(args.config)
    if args.registry:
        config = replace(config, registry_url=args.registry)
    if args.verbose:
        config = replace(config, log_level="DEBUG")
    configure_logging(config)
    return config


def _keyring_dir(config: VPMConfig, root: Path) -> Optional[Path]:
    if not config.keyring_dir:
        return None
    keyring = Path(config.keyring_dir).expanduser()
    return keyring if keyring.is_absolute() else root / keyring


def _trust_key(args) -> int:
    config = _load_config(args)
    keyring = _keyring_dir(config, Path(args.root).resolve())
    try:
        fingerprints = gpg.trust_publisher_key(Path(args.key_file), keyring_dir=str(keyring) if keyring else None)
    except (OSError, ValueError, gpg.GPGNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    for fingerprint in fingerprints:
        print(fingerprint)
    return 0


def _create_manager(args) -> PackageManager:
    config = _load_config(args)
    root = Path(args.root).resolve()

    source = None
    if args.source_dir:
        source = FileSystemPackageSource(
            Path(args.source_dir).resolve(),
            gpgcheck=config.gpgcheck,
            keyring_dir=_keyring_dir(config, root)
        )
    elif args.registry:
        source = RegistryPackageSource(
            config.registry_url,
            timeout=config.request_timeout,
            gpgcheck=config.gpgcheck,
            keyring_dir=_keyring_dir(config, root)
        )

    return PackageManager(root, source=source, config=config)


def _run(args, manager: PackageManager) -> int:
    if args.command == "update":
        options = UpdateOptions.NONE
        if args.annotate:
            options |= UpdateOptions.JUST_ANNOTATE
        if args.reinstall:
            options |= UpdateOptions.REINSTALL
        result = manager.update(options)
        for action in result.actions:
            print(action)
        return 0 if result.up_to_date else 1

    if args.command == "list":
        print(manager.info())
        return 0

    if args.command == "flags":
        for flag in manager.dflags:
            print(flag)
        return 0

    if args.command == "install":
        installed = manager.install(args.name, RangeConstraint(args.range))
        print(f"{installed.name} {installed.version}")
        return 0

    if args.command == "uninstall":
        manager.uninstall(args.name)
        return 0

    return 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "trust-key":
        return _trust_key(args)
    try:
        manager = _create_manager(args)
        try:
            return _run(args, manager)
        finally:
            manager.source.close()
    except VPMError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2


def run():
    """Console script entry point"""
    sys.exit(main())


if __name__ == "__main__":
    run()
