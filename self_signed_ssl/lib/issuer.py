"""Certificate request generation and signing against the CA."""

from .cert_utils import (
    generate_private_key,
    load_ca,
    load_csr,
    next_serial_number,
    serialize_certificate,
    serialize_csr,
    write_private_key,
)
from .certificate_builder import CertificateBuilder
from .config import IssuanceConfig
from .errors import ConfigurationError, GenerationError
from .extensions import DEFAULT_SECTION, read_sections, render_leaf_extensions
from .logging_config import LOGGER
from .models import CAHandle, CertHandle, CSRHandle, Provenance
from .subject import Subject, build_dn_string


class CertificateIssuer:
    """Generates the server key and CSR, then signs the CSR with the CA."""

    def __init__(self, config: IssuanceConfig) -> None:
        """Initialize issuer with configuration.

        Args:
            config: Resolved issuance configuration
        """
        self.config = config

    def ensure_csr(self, subject: Subject) -> CSRHandle | None:
        """Return the CSR to sign, generating key and request when none was supplied.

        Args:
            subject: Subject for a newly generated request

        Returns:
            CSRHandle, or None for a CA-only run

        Raises:
            GenerationError: If the key or request cannot be produced
        """
        if self.config.ca_only:
            return None

        if self.config.csr_path is not None:
            return CSRHandle(
                csr_path=self.config.csr_path, key_path=None, provenance=Provenance.SUPPLIED
            )

        key_path = self.config.output_path(f"{subject.base_filename}.key")
        csr_path = self.config.output_path(f"{subject.base_filename}.csr")

        LOGGER.info("Generating %d-bit key: %s", self.config.key_size, key_path)
        key = generate_private_key(self.config.key_size)

        LOGGER.info("Generating CSR for %s", build_dn_string(subject))
        try:
            csr = CertificateBuilder.build_csr(subject, key)
        except (ValueError, TypeError) as e:
            raise GenerationError(f"CSR generation failed: {e}") from e

        try:
            write_private_key(key_path, key)
            csr_path.write_bytes(serialize_csr(csr))
        except OSError as e:
            raise GenerationError(f"cannot write CSR to {self.config.output_dir}: {e}") from e

        return CSRHandle(csr_path=csr_path, key_path=key_path, provenance=Provenance.GENERATED)

    def issue_certificate(
        self, ca: CAHandle | None, csr: CSRHandle | None, subject: Subject
    ) -> CertHandle | None:
        """Sign the CSR with the CA and write <name>.crt.

        The extensions file is the caller's --extfile when given, otherwise a
        <name>.ext generated from subject and removed once signing finishes.

        Returns:
            CertHandle, or None for CA-only and CSR-only runs

        Raises:
            ConfigurationError: If CA or CSR cannot be loaded or extensions are invalid
            GenerationError: If signing or writing the certificate fails
        """
        if self.config.ca_only or self.config.csr_only:
            return None
        if ca is None or csr is None:
            raise ConfigurationError("signing requires both a CA and a CSR")

        cert_path = self.config.output_path(f"{subject.base_filename}.crt")

        if self.config.extfile_path is not None:
            ext_path = self.config.extfile_path
            transient = False
        else:
            ext_path = self.config.output_path(f"{subject.base_filename}.ext")
            transient = True
            try:
                ext_path.write_text(render_leaf_extensions(subject))
            except OSError as e:
                raise GenerationError(f"cannot write extensions file {ext_path}: {e}") from e

        try:
            sections = read_sections(ext_path)
            ca_cert, ca_key = load_ca(ca.cert_path, ca.key_path)
            request = load_csr(csr.csr_path)
            serial_number = next_serial_number(ca.cert_path.with_suffix(".srl"))

            LOGGER.info("Signing %s with %s", csr.csr_path, ca.cert_path)
            cert = CertificateBuilder.build_server_certificate(
                csr=request,
                issuer_cert=ca_cert,
                issuer_key=ca_key,
                validity_days=self.config.validity_days,
                serial_number=serial_number,
                directives=sections[DEFAULT_SECTION],
                sections=sections,
            )
            cert_path.write_bytes(serialize_certificate(cert))
        except ConfigurationError:
            raise
        except OSError as e:
            raise GenerationError(f"cannot write certificate {cert_path}: {e}") from e
        except (ValueError, TypeError) as e:
            raise GenerationError(f"signing failed: {e}") from e
        finally:
            if transient:
                ext_path.unlink(missing_ok=True)

        return CertHandle(cert_path=cert_path, serial_number=serial_number)
