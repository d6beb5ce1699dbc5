"""Certificate utility functions for key generation, serialization and file output."""

import os
import tempfile
import uuid
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .errors import ConfigurationError, GenerationError


def generate_private_key(key_size: int = 2048) -> RSAPrivateKey:
    """Generate RSA private key with specified size.

    Raises:
        GenerationError: If the key size is rejected by the backend
    """
    try:
        return rsa.generate_private_key(
            public_exponent=65537,
            key_size=key_size,
        )
    except ValueError as e:
        raise GenerationError(f"cannot generate {key_size}-bit RSA key: {e}") from e


def serialize_private_key(key: RSAPrivateKey) -> bytes:
    """Serialize private key to PEM format (PKCS8, no encryption)."""
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def deserialize_private_key(pem_data: bytes) -> RSAPrivateKey:
    """Deserialize private key from PEM bytes."""
    key = serialization.load_pem_private_key(pem_data, password=None)
    if not isinstance(key, RSAPrivateKey):
        raise ValueError("expected RSA private key")
    return key


def serialize_certificate(cert: x509.Certificate) -> bytes:
    """Serialize certificate to PEM format."""
    return cert.public_bytes(serialization.Encoding.PEM)


def deserialize_certificate(pem_data: bytes) -> x509.Certificate:
    """Deserialize certificate from PEM bytes."""
    return x509.load_pem_x509_certificate(pem_data)


def serialize_csr(csr: x509.CertificateSigningRequest) -> bytes:
    """Serialize CSR to PEM format."""
    return csr.public_bytes(serialization.Encoding.PEM)


def deserialize_csr(pem_data: bytes) -> x509.CertificateSigningRequest:
    """Deserialize CSR from PEM bytes."""
    return x509.load_pem_x509_csr(pem_data)


def load_ca(cert_path: Path, key_path: Path) -> tuple[x509.Certificate, RSAPrivateKey]:
    """Load a CA certificate and key from disk and check they belong together.

    Raises:
        ConfigurationError: If either file is unreadable or they do not match
    """
    try:
        cert = deserialize_certificate(cert_path.read_bytes())
        key = deserialize_private_key(key_path.read_bytes())
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"cannot load CA from {cert_path} / {key_path}: {e}") from e

    if cert.public_key().public_numbers() != key.public_key().public_numbers():  # type: ignore[union-attr]
        raise ConfigurationError(f"CA key {key_path} does not match certificate {cert_path}")
    return cert, key


def load_csr(csr_path: Path) -> x509.CertificateSigningRequest:
    """Load a PEM CSR from disk.

    Raises:
        ConfigurationError: If the file is unreadable or not a CSR
    """
    try:
        return deserialize_csr(csr_path.read_bytes())
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"cannot load CSR from {csr_path}: {e}") from e


def generate_serial_number() -> int:
    """Generate certificate serial number from UUID4.

    Uses UUID v4 (random) for 128-bit serial numbers with ~122 bits of
    entropy, above the 64-bit CSPRNG minimum of the CA/Browser Forum
    baseline requirements.
    """
    return uuid.uuid4().int


def next_serial_number(serial_path: Path) -> int:
    """Return the next serial from an OpenSSL-style serial file and record it.

    The file holds the last used serial in hex. It is created with a random
    serial when missing and incremented on every later call.
    """
    if serial_path.exists():
        serial = int(serial_path.read_text().strip(), 16) + 1
    else:
        serial = generate_serial_number()

    serial_hex = f"{serial:X}"
    if len(serial_hex) % 2 != 0:
        serial_hex = "0" + serial_hex
    serial_path.write_text(serial_hex + "\n")
    return serial


def write_private_key(path: Path, key: RSAPrivateKey) -> None:
    """Write key as PEM readable by the owner only."""
    path.write_bytes(serialize_private_key(key))
    os.chmod(path, 0o600)


def write_files_atomically(files: dict[Path, tuple[bytes, int]]) -> None:
    """Write several files so that none becomes visible until all are written.

    Each payload goes to a temporary file next to its target; targets are
    replaced only once every temporary file was written successfully.

    Args:
        files: Mapping of target path to (content, permission bits)
    """
    staged: list[tuple[Path, Path]] = []
    try:
        for target, (content, mode) in files.items():
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
            tmp_path = Path(tmp_name)
            staged.append((tmp_path, target))
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
            os.chmod(tmp_path, mode)
        for tmp_path, target in staged:
            os.replace(tmp_path, target)
    finally:
        for tmp_path, _ in staged:
            tmp_path.unlink(missing_ok=True)
