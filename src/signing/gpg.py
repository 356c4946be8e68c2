# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
GPG Verification of Package Archives

Wraps python-gnupg for the two operations package sources need: trusting a
publisher key and checking a detached '.asc' signature next to an archive.
"""

import gnupg
from pathlib import Path
from typing import List, Optional, Tuple


class GPGNotFoundError(Exception):
    """Raised when GPG executable is not found on the system"""
    pass


def _get_gpg_instance(keyring_dir: Optional[str] = None) -> gnupg.GPG:
    """
    Get GPG instance with optional custom keyring directory.

    Args:
        keyring_dir: Optional path to custom GPG keyring directory.
                    If None, uses system default (~/.gnupg)

    Returns:
        gnupg.GPG instance

    Raises:
        GPGNotFoundError: If GPG executable is not found
    """
    try:
        if keyring_dir:
            Path(keyring_dir).mkdir(parents=True, exist_ok=True)
            gpg = gnupg.GPG(gnupghome=str(keyring_dir))
        else:
            gpg = gnupg.GPG()

        # Test if GPG is available
        gpg.list_keys()
        return gpg
    except Exception as e:
        raise GPGNotFoundError(
            f"GPG not found or not properly configured. "
            f"Please install GPG (gpg or gnupg). Error: {str(e)}"
        )


def signature_path_for(archive_path: Path) -> Path:
    """Detached signature belonging to an archive: '<archive>.asc'"""
    archive_path = Path(archive_path)
    return archive_path.with_name(archive_path.name + ".asc")


def verify_signature(
    filepath: str,
    signature_path: str,
    keyring_dir: Optional[str] = None
) -> Tuple[bool, str]:
    """
    Verifies a detached GPG signature against a file.

    Args:
        filepath: Path to the signed archive
        signature_path: Path to the .asc signature file
        keyring_dir: Optional custom keyring directory

    Returns:
        (is_valid, error_message): error_message is empty string if valid.

    Raises:
        GPGNotFoundError: If GPG is not installed
        FileNotFoundError: If file or signature doesn't exist
    """
    filepath = Path(filepath)
    signature_path = Path(signature_path)

    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    if not signature_path.exists():
        raise FileNotFoundError(f"Signature file not found: {signature_path}")

    gpg = _get_gpg_instance(keyring_dir)

    with open(signature_path, 'rb') as sig_file:
        verified = gpg.verify_file(sig_file, str(filepath))

    if verified.valid:
        return (True, "")

    error_parts = []
    if verified.status == 'signature bad':
        error_parts.append("Signature does not match archive content")
    elif verified.status == 'no public key':
        error_parts.append(f"Public key not found: {verified.key_id}")
        error_parts.append("Publisher may not be trusted")
    elif verified.status:
        error_parts.append(f"Verification failed: {verified.status}")

    if verified.stderr:
        error_parts.append(f"GPG error: {verified.stderr}")

    error_message = ". ".join(error_parts) if error_parts else "Signature verification failed"
    return (False, error_message)


def trust_publisher_key(key_file: Path, keyring_dir: Optional[str] = None) -> List[str]:
    """
    Import an ASCII-armored publisher key file into the keyring used for
    signature checks.

    Returns:
        Fingerprints of all imported keys

    Raises:
        GPGNotFoundError: If GPG is not installed
        FileNotFoundError: If key_file does not exist
        ValueError: If the file holds no usable key
    """
    key_data = Path(key_file).read_text(encoding="utf-8")
    result = _get_gpg_instance(keyring_dir).import_keys(key_data)

    fingerprints = [fp for fp in (result.fingerprints or []) if fp]
    if not result.count or not fingerprints:
        raise ValueError(f"No public key imported from {key_file}: {result.stderr}")
    return fingerprints
