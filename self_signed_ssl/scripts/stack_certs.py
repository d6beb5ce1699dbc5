#!/usr/bin/env python3
"""Generate or remove the *.docker.localhost certificate used by the proxy stack."""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from self_signed_ssl.lib.errors import SelfSignedSSLError
from self_signed_ssl.lib.logging_config import LOGGER
from self_signed_ssl.lib.stack import (
    DEFAULT_CERT_DIR,
    DEFAULT_OUTPUT_DIR,
    clean_stack_certs,
    generate_stack_certs,
)
from self_signed_ssl.lib.trust import TrustRegistrar, select_strategies


def main(argv: Sequence[str] | None = None) -> int:
    """Run the requested stack certificate command.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(
        prog="self-signed-ssl-stack",
        description="Manage the proxy stack's self-signed certificate",
    )
    parser.add_argument(
        "--cert-dir",
        type=Path,
        default=DEFAULT_CERT_DIR,
        help=f"Proxy certificate directory (default: {DEFAULT_CERT_DIR})",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help=f"Issuance output directory (default: {DEFAULT_OUTPUT_DIR})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser(
        "generate", help="Generate SSL certificates if they don't exist"
    )
    generate.add_argument(
        "-t",
        "--trust",
        action="store_true",
        help="Add the CA certificate to the operating system trust store",
    )
    subparsers.add_parser(
        "clean", help="Remove generated SSL certificates and the output directory"
    )
    args = parser.parse_args(argv)

    try:
        if args.command == "clean":
            clean_stack_certs(args.cert_dir, args.output_dir)
            LOGGER.info("Certificates cleaned.")
            return 0

        result = generate_stack_certs(
            cert_dir=args.cert_dir,
            output_dir=args.output_dir,
            registrar=TrustRegistrar(select_strategies()),
            trust=args.trust,
        )
    except (SelfSignedSSLError, OSError) as e:
        LOGGER.error("Stack certificate command failed: %s", e)
        return 1

    if result.generated:
        LOGGER.info("Certificates generated and copied.")
        LOGGER.info("  Key: %s", result.key_path)
        LOGGER.info("  Cert: %s", result.cert_path)
        LOGGER.info(
            "Add the CA certificate to your browser's trusted CAs: %s", result.ca_cert_path
        )

    if result.trust_error is not None:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
