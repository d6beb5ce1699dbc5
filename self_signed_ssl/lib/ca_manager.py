"""CA manager: locate, reuse or generate the certificate authority."""

from .cert_utils import (
    generate_private_key,
    serialize_certificate,
    serialize_private_key,
    write_files_atomically,
)
from .certificate_builder import CertificateBuilder
from .config import CA_CERT_FILENAME, CA_KEY_FILENAME, DEFAULT_CA_EXTENSIONS, IssuanceConfig
from .errors import ConfigurationError, GenerationError
from .extensions import resolve_ca_section
from .logging_config import LOGGER
from .models import CAHandle, Provenance
from .subject import Subject, build_dn_string


class CAManager:
    """Certificate Authority manager for one output directory."""

    def __init__(self, config: IssuanceConfig) -> None:
        """Initialize CA manager with configuration.

        Args:
            config: Resolved issuance configuration
        """
        self.config = config

    def ensure_ca(self, subject: Subject) -> CAHandle | None:
        """Return the CA to sign with, generating it only when needed.

        Preconditions checked in order:
            - CA cert and key supplied by the caller: returned as-is
            - CSR-only run without a supplied CA: no CA, returns None
            - CA.key and CA.pem both present in the output directory: reused
            - exactly one of them present: rejected
        Otherwise a new key and self-signed certificate are written. Both
        files appear together or not at all.

        Args:
            subject: Subject for a newly generated CA certificate

        Returns:
            CAHandle, or None for a CSR-only run without a CA

        Raises:
            ConfigurationError: On a half-present CA or unknown extensions section
            GenerationError: If key or certificate generation fails
        """
        if self.config.ca_supplied:
            return CAHandle(
                key_path=self.config.ca_key_path,  # type: ignore[arg-type]
                cert_path=self.config.ca_cert_path,  # type: ignore[arg-type]
                provenance=Provenance.SUPPLIED,
            )

        if self.config.csr_only:
            return None

        key_path = self.config.output_path(CA_KEY_FILENAME)
        cert_path = self.config.output_path(CA_CERT_FILENAME)

        if key_path.exists() and cert_path.exists():
            LOGGER.info("Reusing existing CA: %s", cert_path)
            return CAHandle(key_path=key_path, cert_path=cert_path, provenance=Provenance.REUSED)
        if key_path.exists() or cert_path.exists():
            present = key_path if key_path.exists() else cert_path
            raise ConfigurationError(
                f"incomplete CA in {self.config.output_dir}: only {present.name} exists"
            )

        if self.config.ca_extensions is not None:
            directives = resolve_ca_section(self.config.ca_extensions, self.config.extfile_path)
        else:
            directives = resolve_ca_section(DEFAULT_CA_EXTENSIONS)

        LOGGER.info("Generating %d-bit CA key: %s", self.config.key_size, key_path)
        ca_key = generate_private_key(self.config.key_size)

        LOGGER.info("Generating CA certificate for %s", build_dn_string(subject))
        try:
            ca_cert = CertificateBuilder.build_ca(
                subject=subject,
                private_key=ca_key,
                validity_days=self.config.validity_days,
                directives=directives,
            )
        except (ConfigurationError, GenerationError):
            raise
        except (ValueError, TypeError) as e:
            raise GenerationError(f"CA certificate generation failed: {e}") from e

        try:
            write_files_atomically(
                {
                    key_path: (serialize_private_key(ca_key), 0o600),
                    cert_path: (serialize_certificate(ca_cert), 0o644),
                }
            )
        except OSError as e:
            raise GenerationError(f"cannot write CA to {self.config.output_dir}: {e}") from e

        return CAHandle(key_path=key_path, cert_path=cert_path, provenance=Provenance.GENERATED)
