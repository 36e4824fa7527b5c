"""
Certificate, key and chain validation.

Validation has no side effects: files are read and parsed, nothing is
uploaded. Every problem found is reported, so a user fixing flags sees all
of them at once.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from bbl.core.errors import CertificateError, ErrorList


def _public_bytes(public_key: Any) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


class CertificateValidator:
    """Validates PEM certificate material for a bbl command."""

    def validate(self, command: str, certificate_path: str, key_path: str, chain_path: str) -> None:
        """
        Validate certificate, key and optional chain files.

        Args:
            command: Command the files were given to, used in messages
            certificate_path: Path to the PEM certificate
            key_path: Path to the PEM private key
            chain_path: Path to the PEM chain, or "" for none

        Raises:
            CertificateError: If exactly one problem is found
            ErrorList: If several problems are found
        """
        errors: list[str] = []

        if not certificate_path:
            errors.append(f"--cert is required for {command}")
        if not key_path:
            errors.append(f"--key is required for {command}")
        if errors:
            self._raise(errors)

        cert_data = self._read(certificate_path, "certificate", errors)
        key_data = self._read(key_path, "key", errors)
        chain_data = self._read(chain_path, "chain", errors) if chain_path else None
        if errors:
            self._raise(errors)

        certificate = self._parse_certificate(cert_data, certificate_path, errors)
        private_key = self._parse_private_key(key_data, key_path, errors)
        chain = self._parse_chain(chain_data, chain_path, errors) if chain_data is not None else None

        if certificate is not None and private_key is not None:
            if _public_bytes(certificate.public_key()) != _public_bytes(private_key.public_key()):
                errors.append("certificate and key mismatch")

        if certificate is not None and chain:
            if not any(c.subject == certificate.issuer for c in chain):
                errors.append("certificate must be signed by the chain")

        if errors:
            self._raise(errors)

    def _raise(self, errors: list[str]) -> None:
        if len(errors) == 1:
            raise CertificateError(errors[0])
        raise ErrorList(errors)

    def _read(self, path: str, kind: str, errors: list[str]) -> bytes | None:
        file_path = Path(path)
        if not file_path.exists():
            errors.append(f"{kind} file not found: {path}")
            return None
        if not file_path.is_file():
            errors.append(f"{kind} is not a regular file: {path}")
            return None
        try:
            return file_path.read_bytes()
        except OSError as e:
            errors.append(f"{kind} file not readable: {path}: {e.strerror}")
            return None

    def _parse_certificate(
        self, data: bytes | None, path: str, errors: list[str]
    ) -> x509.Certificate | None:
        if data is None:
            return None
        try:
            return x509.load_pem_x509_certificate(data)
        except ValueError:
            errors.append(f"failed to parse certificate: {path}")
            return None

    def _parse_private_key(self, data: bytes | None, path: str, errors: list[str]) -> Any:
        if data is None:
            return None
        try:
            return serialization.load_pem_private_key(data, password=None)
        except (ValueError, TypeError):
            errors.append(f"failed to parse private key: {path}")
            return None

    def _parse_chain(
        self, data: bytes | None, path: str, errors: list[str]
    ) -> list[x509.Certificate] | None:
        if data is None:
            return None
        try:
            return x509.load_pem_x509_certificates(data)
        except ValueError:
            errors.append(f"failed to parse chain: {path}")
            return None
