"""Shared pytest fixtures for bbl tests."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from bbl.core.state import AWS, BOSH, LB, KeyPair, Stack, State


def _name(common_name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def _certificate(subject: str, issuer: str, public_key, signing_key) -> x509.Certificate:
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(_name(subject))
        .issuer_name(_name(issuer))
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(signing_key, hashes.SHA256())
    )


def _key_pem(key) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@dataclass
class PEMMaterial:
    """PEM contents of a CA-signed server certificate."""

    cert: bytes
    key: bytes
    chain: bytes
    other_key: bytes
    other_chain: bytes


@dataclass
class CertFiles:
    """Paths of PEM files written to a temp directory."""

    cert: str
    key: str
    chain: str
    other_key: str
    other_chain: str


@pytest.fixture(scope="session")
def pem_material() -> PEMMaterial:
    """Generate a CA, a server certificate it signs, and unrelated material."""
    ca_key = ec.generate_private_key(ec.SECP256R1())
    ca_cert = _certificate("bbl-test-ca", "bbl-test-ca", ca_key.public_key(), ca_key)

    server_key = ec.generate_private_key(ec.SECP256R1())
    server_cert = _certificate("lb.example.com", "bbl-test-ca", server_key.public_key(), ca_key)

    other_ca_key = ec.generate_private_key(ec.SECP256R1())
    other_ca_cert = _certificate(
        "other-ca", "other-ca", other_ca_key.public_key(), other_ca_key
    )

    return PEMMaterial(
        cert=server_cert.public_bytes(serialization.Encoding.PEM),
        key=_key_pem(server_key),
        chain=ca_cert.public_bytes(serialization.Encoding.PEM),
        other_key=_key_pem(ec.generate_private_key(ec.SECP256R1())),
        other_chain=other_ca_cert.public_bytes(serialization.Encoding.PEM),
    )


@pytest.fixture
def cert_files(tmp_path: Path, pem_material: PEMMaterial) -> CertFiles:
    """Write the PEM material to files."""
    paths = {}
    for field in ("cert", "key", "chain", "other_key", "other_chain"):
        path = tmp_path / f"{field}.pem"
        path.write_bytes(getattr(pem_material, field))
        paths[field] = str(path)
    return CertFiles(**paths)


@pytest.fixture
def legacy_state() -> State:
    """A CloudFormation environment with no LB."""
    return State(
        env_id="some-env-id",
        aws=AWS(access_key_id="some-access-key", secret_access_key="some-secret", region="some-region"),
        key_pair=KeyPair(name="some-key-pair", private_key="some-private-key"),
        bosh=BOSH(
            director_name="some-director",
            director_address="https://10.0.0.6:25555",
            director_username="admin",
            director_password="password",
        ),
        stack=Stack(name="some-stack", bosh_az="some-bosh-az"),
    )


@pytest.fixture
def terraform_state(legacy_state: State) -> State:
    """A Terraform environment with no LB."""
    state = legacy_state.copy_state()
    state.stack = Stack()
    state.tf_state = "some-tf-state"
    state.lb = LB()
    return state
