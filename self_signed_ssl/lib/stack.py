"""Certificates for the local reverse-proxy stack.

Issues the wildcard certificate for *.docker.localhost once and copies the
key and certificate into the directory the proxy container mounts.
"""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from .config import IssuanceConfig
from .errors import GenerationError
from .logging_config import LOGGER
from .subject import Subject
from .trust import TrustRegistrar
from .workflow import run_issuance

DEFAULT_CERT_DIR = Path("traefik-data/certs")
DEFAULT_OUTPUT_DIR = Path("self-signed-ssl/docker-localhost")

STACK_SUBJECT = Subject(
    common_name="*.docker.localhost",
    country="XX",
    state="LocalDevState",
    locality="LocalDevCity",
    organization="LocalDevelopment",
    organizational_unit="DevTeam",
    alt_names="*.docker.localhost",
)


@dataclass(frozen=True)
class StackCertResult:
    """Installed proxy certificate paths.

    ca_cert_path is None when generation was skipped.
    """

    key_path: Path
    cert_path: Path
    ca_cert_path: Path | None
    generated: bool
    trust_error: str | None = None


def stack_cert_paths(cert_dir: Path, subject: Subject = STACK_SUBJECT) -> tuple[Path, Path]:
    """Return (key, certificate) paths inside the proxy certificate directory."""
    return (
        cert_dir / f"{subject.base_filename}.key",
        cert_dir / f"{subject.base_filename}.crt",
    )


def generate_stack_certs(
    cert_dir: Path,
    output_dir: Path,
    registrar: TrustRegistrar,
    trust: bool = False,
) -> StackCertResult:
    """Issue the stack certificate unless the proxy already has one.

    Generation is skipped when either the key or the certificate is already
    present in cert_dir.

    Args:
        cert_dir: Directory mounted into the proxy container
        output_dir: Issuance output directory (CA and all artifacts)
        registrar: Trust registrar used when trust is set
        trust: Also add the CA to the OS trust store

    Returns:
        StackCertResult describing the installed files
    """
    key_target, cert_target = stack_cert_paths(cert_dir)

    if key_target.exists() or cert_target.exists():
        LOGGER.info("SSL certificates already exist in %s. Skipping generation.", cert_dir)
        return StackCertResult(
            key_path=key_target, cert_path=cert_target, ca_cert_path=None, generated=False
        )

    cert_dir.mkdir(parents=True, exist_ok=True)
    config = IssuanceConfig(
        output_dir=output_dir,
        interactive=False,
        create_path=True,
        trust=trust,
    )
    result = run_issuance(config, STACK_SUBJECT, registrar)

    if result.ca is None or result.csr is None or result.csr.key_path is None:
        raise GenerationError("issuance did not produce a CA and key")
    if result.certificate is None:
        raise GenerationError("issuance did not produce a certificate")

    LOGGER.info("Copying certificates to %s", cert_dir)
    shutil.copyfile(result.certificate.cert_path, cert_target)
    shutil.copyfile(result.csr.key_path, key_target)
    os.chmod(key_target, 0o600)

    return StackCertResult(
        key_path=key_target,
        cert_path=cert_target,
        ca_cert_path=result.ca.cert_path,
        generated=True,
        trust_error=result.trust_error,
    )


def clean_stack_certs(cert_dir: Path, output_dir: Path) -> None:
    """Remove the installed key and certificate and the whole output directory."""
    key_target, cert_target = stack_cert_paths(cert_dir)
    LOGGER.info("Removing SSL certificates from %s", cert_dir)
    key_target.unlink(missing_ok=True)
    cert_target.unlink(missing_ok=True)

    LOGGER.info("Removing SSL certificate output directory %s", output_dir)
    if output_dir.exists():
        shutil.rmtree(output_dir)
