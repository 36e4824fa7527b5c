"""Tests for certificate validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from bbl.certs import CertificateValidator
from bbl.core.errors import CertificateError, ErrorList


@pytest.fixture
def validator() -> CertificateValidator:
    return CertificateValidator()


class TestCertificateValidator:
    """Tests for CertificateValidator.validate."""

    def test_valid_cert_and_key(self, validator, cert_files):
        validator.validate("create-lbs", cert_files.cert, cert_files.key, "")

    def test_valid_with_chain(self, validator, cert_files):
        validator.validate("create-lbs", cert_files.cert, cert_files.key, cert_files.chain)

    def test_missing_flags(self, validator):
        """Test both missing flags are reported together."""
        with pytest.raises(ErrorList) as exc_info:
            validator.validate("create-lbs", "", "", "")

        assert str(exc_info.value) == (
            "the following errors occurred:\n"
            "--cert is required for create-lbs,\n"
            "--key is required for create-lbs"
        )

    def test_missing_key_flag(self, validator, cert_files):
        with pytest.raises(CertificateError, match="--key is required for update-lbs"):
            validator.validate("update-lbs", cert_files.cert, "", "")

    def test_missing_files(self, validator):
        with pytest.raises(ErrorList) as exc_info:
            validator.validate("create-lbs", "/fake/cert", "/fake/key", "/fake/chain")

        assert exc_info.value.errors == [
            "certificate file not found: /fake/cert",
            "key file not found: /fake/key",
            "chain file not found: /fake/chain",
        ]

    def test_directory_is_not_a_file(self, validator, cert_files, tmp_path: Path):
        with pytest.raises(CertificateError, match="certificate is not a regular file"):
            validator.validate("create-lbs", str(tmp_path), cert_files.key, "")

    def test_unparseable_certificate(self, validator, cert_files, tmp_path: Path):
        bad = tmp_path / "bad.pem"
        bad.write_text("not a certificate")

        with pytest.raises(CertificateError, match="failed to parse certificate"):
            validator.validate("create-lbs", str(bad), cert_files.key, "")

    def test_unparseable_key(self, validator, cert_files, tmp_path: Path):
        bad = tmp_path / "bad.key"
        bad.write_text("not a key")

        with pytest.raises(CertificateError, match="failed to parse private key"):
            validator.validate("create-lbs", cert_files.cert, str(bad), "")

    def test_key_mismatch(self, validator, cert_files):
        with pytest.raises(CertificateError, match="certificate and key mismatch"):
            validator.validate("create-lbs", cert_files.cert, cert_files.other_key, "")

    def test_chain_does_not_sign_certificate(self, validator, cert_files):
        with pytest.raises(CertificateError, match="certificate must be signed by the chain"):
            validator.validate("create-lbs", cert_files.cert, cert_files.key, cert_files.other_chain)

    def test_mismatch_and_bad_chain_reported_together(self, validator, cert_files):
        with pytest.raises(ErrorList) as exc_info:
            validator.validate(
                "create-lbs", cert_files.cert, cert_files.other_key, cert_files.other_chain
            )

        assert len(exc_info.value) == 2
