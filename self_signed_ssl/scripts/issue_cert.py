#!/usr/bin/env python3
"""Generate a self-signed CA and a CA-signed certificate for local HTTPS."""

import sys
from collections.abc import Sequence

from self_signed_ssl.lib.errors import SelfSignedSSLError, UsageError
from self_signed_ssl.lib.logging_config import LOGGER
from self_signed_ssl.lib.options import resolve_options
from self_signed_ssl.lib.prompts import PromptEngine
from self_signed_ssl.lib.trust import TrustRegistrar, select_strategies
from self_signed_ssl.lib.workflow import run_issuance


def main(argv: Sequence[str] | None = None) -> int:
    """Run certificate issuance.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        resolved = resolve_options(argv)
    except UsageError as e:
        LOGGER.error("Invalid arguments: %s", e)
        return 1

    config = resolved.config

    try:
        config.validate()
        subject = PromptEngine(config.interactive).complete(resolved.subject)
        result = run_issuance(config, subject, TrustRegistrar(select_strategies()))
    except SelfSignedSSLError as e:
        LOGGER.error("Certificate generation failed: %s", e)
        return 1

    LOGGER.info("Output directory: %s", config.display_output_dir)
    if result.ca is not None:
        LOGGER.info("CA (%s):", result.ca.provenance.value)
        LOGGER.info("  Key: %s", result.ca.key_path)
        LOGGER.info("  Cert: %s", result.ca.cert_path)
    if result.csr is not None:
        LOGGER.info("CSR (%s): %s", result.csr.provenance.value, result.csr.csr_path)
        if result.csr.key_path is not None:
            LOGGER.info("  Key: %s", result.csr.key_path)
    if result.certificate is not None:
        LOGGER.info("Certificate: %s", result.certificate.cert_path)
        LOGGER.info("  Serial: %X", result.certificate.serial_number)

    if result.trust_error is not None:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
