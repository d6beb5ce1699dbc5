"""Command-line option resolution for the issuance command."""

import argparse
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .config import DEFAULT_KEY_SIZE, DEFAULT_VALIDITY_DAYS, IssuanceConfig
from .errors import UsageError

__version__ = "1.0.0"

PROG = "self-signed-ssl"


@dataclass(frozen=True)
class SubjectOptions:
    """Subject fields as given on the command line; None means not given."""

    country: str | None = None
    state: str | None = None
    locality: str | None = None
    organization: str | None = None
    organizational_unit: str | None = None
    common_name: str | None = None
    alt_names: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class ResolvedOptions:
    """Result of option resolution."""

    config: IssuanceConfig
    subject: SubjectOptions


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors by raising instead of exiting 2."""

    def error(self, message: str):  # type: ignore[override]
        self.print_usage(sys.stderr)
        raise UsageError(message)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return number


def _path(value: str) -> Path:
    return Path(value).expanduser()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the issuance command."""
    parser = _ArgumentParser(
        prog=PROG,
        description="Generate a self-signed certificate authority and certificates for local HTTPS",
        allow_abbrev=False,
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {__version__}"
    )

    output = parser.add_argument_group("output")
    output.add_argument(
        "-p",
        "--path",
        type=_path,
        default=None,
        help="Output directory for generated files (default: current directory)",
    )
    output.add_argument(
        "--path-create",
        action="store_true",
        help="Create the output directory if it does not exist",
    )
    output.add_argument(
        "-d",
        "--duration",
        type=_positive_int,
        default=DEFAULT_VALIDITY_DAYS,
        help=f"Validity duration in days (default: {DEFAULT_VALIDITY_DAYS})",
    )
    output.add_argument(
        "-b",
        "--bits",
        type=_positive_int,
        default=DEFAULT_KEY_SIZE,
        help=f"RSA key size in bits (default: {DEFAULT_KEY_SIZE})",
    )
    output.add_argument(
        "--no-interaction",
        action="store_true",
        help="Do not prompt for missing subject fields (common name is still required)",
    )

    ca = parser.add_argument_group("certificate authority")
    ca.add_argument("--ca", type=_path, help="Existing CA certificate (requires --ca-key)")
    ca.add_argument("--ca-key", type=_path, help="Existing CA private key (requires --ca)")
    ca.add_argument("--ca-only", action="store_true", help="Only generate the CA")
    ca.add_argument(
        "--ca-ext",
        help="Extensions section to apply to a generated CA certificate (default: v3_ca)",
    )
    ca.add_argument(
        "-t",
        "--trust",
        action="store_true",
        help="Add the CA certificate to the operating system trust store",
    )

    csr = parser.add_argument_group("certificate")
    csr.add_argument("--csr", type=_path, help="Existing certificate signing request")
    csr.add_argument(
        "--csr-only", action="store_true", help="Only generate the key and CSR, do not sign"
    )
    csr.add_argument("--extfile", type=_path, help="Extensions file used when signing")

    subject = parser.add_argument_group("subject")
    subject.add_argument("-c", "--country", help="Country name (2 letter code)")
    subject.add_argument("-s", "--state", help="State or province name")
    subject.add_argument("-l", "--locality", help="Locality name, e.g. city")
    subject.add_argument("-o", "--organization", help="Organization name")
    subject.add_argument("-u", "--unit", help="Organizational unit name")
    subject.add_argument("-n", "--common-name", help="Common name, e.g. *.example.com")
    subject.add_argument(
        "-a", "--san", help="Comma-separated Subject Alternative Names"
    )
    subject.add_argument("-e", "--email", help="Email address")

    return parser


def resolve_options(argv: Sequence[str] | None = None) -> ResolvedOptions:
    """Parse argv into an immutable configuration and the given subject fields.

    --help and --version print and raise SystemExit(0).

    Raises:
        UsageError: Unknown flag or malformed value (usage already printed)
    """
    args = build_parser().parse_args(argv)

    output_dir = args.path if args.path is not None else Path.cwd()

    config = IssuanceConfig(
        output_dir=output_dir,
        validity_days=args.duration,
        key_size=args.bits,
        interactive=not args.no_interaction,
        create_path=args.path_create,
        trust=args.trust,
        ca_only=args.ca_only,
        csr_only=args.csr_only,
        ca_extensions=args.ca_ext,
        ca_cert_path=args.ca,
        ca_key_path=args.ca_key,
        csr_path=args.csr,
        extfile_path=args.extfile,
    )
    subject = SubjectOptions(
        country=args.country,
        state=args.state,
        locality=args.locality,
        organization=args.organization,
        organizational_unit=args.unit,
        common_name=args.common_name,
        alt_names=args.san,
        email=args.email,
    )
    return ResolvedOptions(config=config, subject=subject)
