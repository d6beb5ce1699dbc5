"""Test fixtures for self_signed_ssl tests."""

from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from self_signed_ssl.lib.cert_utils import (
    generate_private_key,
    serialize_certificate,
    serialize_csr,
    serialize_private_key,
)
from self_signed_ssl.lib.certificate_builder import CertificateBuilder
from self_signed_ssl.lib.config import IssuanceConfig
from self_signed_ssl.lib.extensions import resolve_ca_section
from self_signed_ssl.lib.subject import Subject


@pytest.fixture
def temp_output_dir(tmp_path: Path) -> Path:
    """Return temporary directory for test output artifacts."""
    output_dir = tmp_path / "out"
    output_dir.mkdir()
    return output_dir


@pytest.fixture
def make_config(temp_output_dir: Path) -> Callable[..., IssuanceConfig]:
    """Return factory for non-interactive configs writing to temp_output_dir."""
    base = IssuanceConfig(output_dir=temp_output_dir, interactive=False, validity_days=30)

    def _make(**overrides) -> IssuanceConfig:
        return replace(base, **overrides)

    return _make


@pytest.fixture
def subject() -> Subject:
    """Return test subject with a couple of extra SAN entries."""
    return Subject(
        common_name="example.com",
        country="US",
        state="CA",
        organization="Org",
        alt_names="www.example.com,api.example.com",
    )


@pytest.fixture
def ca_subject() -> Subject:
    """Return test CA subject."""
    return Subject(common_name="Test Root CA", country="GB", organization="Test Org")


@pytest.fixture
def ca_key() -> RSAPrivateKey:
    """Generate RSA private key for the CA."""
    return generate_private_key(key_size=2048)


@pytest.fixture
def ca_cert(ca_key: RSAPrivateKey, ca_subject: Subject) -> x509.Certificate:
    """Generate self-signed CA certificate with the default extensions."""
    return CertificateBuilder.build_ca(
        subject=ca_subject,
        private_key=ca_key,
        validity_days=30,
        directives=resolve_ca_section("v3_ca"),
    )


@pytest.fixture
def server_key() -> RSAPrivateKey:
    """Generate RSA private key for the server certificate."""
    return generate_private_key(key_size=2048)


@pytest.fixture
def server_csr(server_key: RSAPrivateKey, subject: Subject) -> x509.CertificateSigningRequest:
    """Generate server CSR."""
    return CertificateBuilder.build_csr(subject, server_key)


@pytest.fixture
def ca_files_on_disk(
    tmp_path: Path,
    ca_key: RSAPrivateKey,
    ca_cert: x509.Certificate,
) -> tuple[Path, Path]:
    """Write a CA outside the output directory and return (cert_path, key_path)."""
    ca_dir = tmp_path / "external-ca"
    ca_dir.mkdir()
    cert_path = ca_dir / "MyCA.pem"
    key_path = ca_dir / "MyCA.key"
    cert_path.write_bytes(serialize_certificate(ca_cert))
    key_path.write_bytes(serialize_private_key(ca_key))
    return cert_path, key_path


@pytest.fixture
def csr_on_disk(tmp_path: Path, server_csr: x509.CertificateSigningRequest) -> Path:
    """Write server CSR outside the output directory and return its path."""
    csr_path = tmp_path / "request.csr"
    csr_path.write_bytes(serialize_csr(server_csr))
    return csr_path
