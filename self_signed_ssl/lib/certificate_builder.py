"""Certificate builder for X.509 CA, request and server certificate construction."""

from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .cert_utils import generate_serial_number
from .errors import ConfigurationError
from .extensions import ExtensionContext, Sections, build_extensions
from .subject import Subject


def _add_extensions(
    builder: x509.CertificateBuilder,
    extensions: list[tuple[x509.ExtensionType, bool]],
) -> x509.CertificateBuilder:
    for extension, critical in extensions:
        try:
            builder = builder.add_extension(extension, critical=critical)
        except ValueError as e:
            raise ConfigurationError(f"cannot add {type(extension).__name__}: {e}") from e
    return builder


class CertificateBuilder:
    """Builds the self-signed CA, certificate requests and CA-signed certificates."""

    @staticmethod
    def build_ca(
        subject: Subject,
        private_key: RSAPrivateKey,
        validity_days: int,
        directives: list[tuple[str, str]],
    ) -> x509.Certificate:
        """Build self-signed CA certificate.

        Args:
            subject: Subject used as both subject and issuer
            private_key: RSA private key for signing
            validity_days: Certificate validity period in days
            directives: CA extensions section (name, value) pairs

        Returns:
            Self-signed X.509 certificate
        """
        name = subject.to_x509_name()
        serial_number = generate_serial_number()
        not_before = datetime.now(timezone.utc)
        not_after = not_before + timedelta(days=validity_days)

        context = ExtensionContext(
            subject_public_key=private_key.public_key(),
            issuer_public_key=private_key.public_key(),
            issuer_name=name,
            issuer_serial=serial_number,
        )

        builder = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(private_key.public_key())
            .serial_number(serial_number)
            .not_valid_before(not_before)
            .not_valid_after(not_after)
        )
        builder = _add_extensions(builder, build_extensions(directives, context))

        return builder.sign(private_key, hashes.SHA256())

    @staticmethod
    def build_csr(subject: Subject, private_key: RSAPrivateKey) -> x509.CertificateSigningRequest:
        """Build a SHA-256 signed certificate request for subject."""
        return (
            x509.CertificateSigningRequestBuilder()
            .subject_name(subject.to_x509_name())
            .sign(private_key, hashes.SHA256())
        )

    @staticmethod
    def build_server_certificate(
        csr: x509.CertificateSigningRequest,
        issuer_cert: x509.Certificate,
        issuer_key: RSAPrivateKey,
        validity_days: int,
        serial_number: int,
        directives: list[tuple[str, str]],
        sections: Sections,
    ) -> x509.Certificate:
        """Build server certificate from CSR, signed by the CA.

        Subject and public key are taken from the CSR; extensions come from
        the extensions file, never from the request.

        Args:
            csr: Certificate signing request
            issuer_cert: CA certificate (issuer)
            issuer_key: CA private key for signing
            validity_days: Certificate validity period in days
            serial_number: Serial number for the new certificate
            directives: Extensions (name, value) pairs
            sections: All extensions file sections, for @section references

        Returns:
            X.509 end-entity certificate signed by the CA

        Raises:
            ConfigurationError: If the CSR signature is invalid or its key is not RSA
        """
        if not csr.is_signature_valid:
            raise ConfigurationError("CSR signature validation failed")

        public_key = csr.public_key()
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise ConfigurationError("CSR public key must be RSA type")

        try:
            issuer_key_identifier = issuer_cert.extensions.get_extension_for_class(
                x509.SubjectKeyIdentifier
            ).value
        except x509.ExtensionNotFound:
            issuer_key_identifier = None

        context = ExtensionContext(
            subject_public_key=public_key,
            issuer_public_key=issuer_key.public_key(),
            issuer_name=issuer_cert.issuer,
            issuer_serial=issuer_cert.serial_number,
            issuer_key_identifier=issuer_key_identifier,
        )

        not_before = datetime.now(timezone.utc)
        not_after = not_before + timedelta(days=validity_days)

        builder = (
            x509.CertificateBuilder()
            .subject_name(csr.subject)
            .issuer_name(issuer_cert.subject)
            .public_key(public_key)
            .serial_number(serial_number)
            .not_valid_before(not_before)
            .not_valid_after(not_after)
        )
        builder = _add_extensions(builder, build_extensions(directives, context, sections))

        return builder.sign(issuer_key, hashes.SHA256())
