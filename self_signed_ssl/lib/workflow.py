"""End-to-end issuance run: CA, trust registration, CSR and signing."""

from .ca_manager import CAManager
from .config import IssuanceConfig
from .errors import TrustError
from .issuer import CertificateIssuer
from .logging_config import LOGGER
from .models import IssuanceResult
from .subject import Subject
from .trust import TrustRegistrar


def run_issuance(
    config: IssuanceConfig, subject: Subject, registrar: TrustRegistrar
) -> IssuanceResult:
    """Run every phase allowed by config for subject.

    Trust registration failures are logged and reported in the result; any
    other failure propagates and stops the run.

    Args:
        config: Validated issuance configuration
        subject: Complete subject (common name set)
        registrar: Trust registrar for the host OS

    Returns:
        IssuanceResult with the handles of everything produced
    """
    config.ensure_output_dir()

    ca = CAManager(config).ensure_ca(subject)

    trusted = False
    trust_error = None
    try:
        trusted = registrar.trust_ca(ca, config.trust, subject.base_filename)
    except TrustError as e:
        LOGGER.error("%s", e)
        trust_error = str(e)

    issuer = CertificateIssuer(config)
    csr = issuer.ensure_csr(subject)
    certificate = issuer.issue_certificate(ca, csr, subject)

    return IssuanceResult(
        ca=ca,
        csr=csr,
        certificate=certificate,
        trusted=trusted,
        trust_error=trust_error,
    )
