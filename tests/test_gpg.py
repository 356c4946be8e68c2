# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for GPG Wrapper Module

Tests signature verification and key import of package archives with
python-gnupg mocked out.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from src.signing import gpg


class TestGPGWrapper:
    """Test suite for GPG wrapper functions"""

    @pytest.fixture
    def archive(self, tmp_path):
        """Archive with detached signature next to it"""
        archive = tmp_path / "lib_1.0.0.zip"
        archive.write_bytes(b"PK")
        gpg.signature_path_for(archive).write_text("-----BEGIN PGP SIGNATURE-----")
        return archive

    @pytest.fixture
    def mock_gpg(self):
        """Patched gnupg.GPG returning one shared instance"""
        with patch("src.signing.gpg.gnupg.GPG") as gpg_class:
            instance = MagicMock()
            instance.list_keys.return_value = []
            gpg_class.return_value = instance
            yield instance

    def test_signature_path_for(self):
        assert gpg.signature_path_for(Path("/tmp/lib_1.0.0.zip")) == Path("/tmp/lib_1.0.0.zip.asc")

    def test_verify_signature_valid(self, archive, mock_gpg):
        """Test verification of valid signature"""
        mock_gpg.verify_file.return_value = MagicMock(valid=True)

        is_valid, error_msg = gpg.verify_signature(str(archive), str(gpg.signature_path_for(archive)))

        assert is_valid is True
        assert error_msg == ""
        assert mock_gpg.verify_file.call_args.args[1] == str(archive)

    def test_verify_signature_bad(self, archive, mock_gpg):
        """Test verification fails for tampered archive"""
        mock_gpg.verify_file.return_value = MagicMock(valid=False, status="signature bad", stderr="")

        is_valid, error_msg = gpg.verify_signature(str(archive), str(gpg.signature_path_for(archive)))

        assert is_valid is False
        assert "does not match" in error_msg

    def test_verify_signature_missing_key(self, archive, mock_gpg):
        """Test verification fails when public key is not in keyring"""
        mock_gpg.verify_file.return_value = MagicMock(
            valid=False, status="no public key", key_id="ABCDEF", stderr="NO_PUBKEY"
        )

        is_valid, error_msg = gpg.verify_signature(str(archive), str(gpg.signature_path_for(archive)))

        assert is_valid is False
        assert "ABCDEF" in error_msg
        assert "NO_PUBKEY" in error_msg

    def test_verify_signature_missing_file(self, tmp_path):
        """Test verification fails for missing archive"""
        with pytest.raises(FileNotFoundError):
            gpg.verify_signature(str(tmp_path / "missing.zip"), str(tmp_path / "missing.zip.asc"))

    def test_verify_signature_missing_signature(self, tmp_path):
        """Test verification fails for missing signature"""
        archive = tmp_path / "lib.zip"
        archive.write_bytes(b"PK")
        with pytest.raises(FileNotFoundError, match="Signature file not found"):
            gpg.verify_signature(str(archive), str(tmp_path / "lib.zip.asc"))

    def test_custom_keyring_created(self, archive, tmp_path):
        """Test custom keyring directory is created and passed to GPG"""
        keyring = tmp_path / "keyring"
        with patch("src.signing.gpg.gnupg.GPG") as gpg_class:
            gpg_class.return_value.verify_file.return_value = MagicMock(valid=True)
            gpg.verify_signature(str(archive), str(gpg.signature_path_for(archive)), keyring_dir=str(keyring))

        assert keyring.is_dir()
        gpg_class.assert_called_once_with(gnupghome=str(keyring))

    def test_gpg_not_found(self, archive):
        """Test missing GPG binary is reported"""
        with patch("src.signing.gpg.gnupg.GPG", side_effect=OSError("gpg: not found")):
            with pytest.raises(gpg.GPGNotFoundError):
                gpg.verify_signature(str(archive), str(gpg.signature_path_for(archive)))

    def test_trust_publisher_key(self, mock_gpg, tmp_path):
        """Test importing a publisher key file returns its fingerprints"""
        key_file = tmp_path / "publisher.asc"
        key_file.write_text("-----BEGIN PGP PUBLIC KEY BLOCK-----")
        mock_gpg.import_keys.return_value = MagicMock(count=1, fingerprints=["FINGERPRINT"])

        assert gpg.trust_publisher_key(key_file) == ["FINGERPRINT"]
        mock_gpg.import_keys.assert_called_once_with("-----BEGIN PGP PUBLIC KEY BLOCK-----")

    def test_trust_publisher_key_invalid(self, mock_gpg, tmp_path):
        """Test a file without key material is rejected"""
        key_file = tmp_path / "publisher.asc"
        key_file.write_text("invalid")
        mock_gpg.import_keys.return_value = MagicMock(count=0, fingerprints=[], stderr="no valid OpenPGP data")

        with pytest.raises(ValueError):
            gpg.trust_publisher_key(key_file)

    def test_trust_publisher_key_missing_file(self, mock_gpg, tmp_path):
        """Test a missing key file is reported"""
        with pytest.raises(FileNotFoundError):
            gpg.trust_publisher_key(tmp_path / "missing.asc")
