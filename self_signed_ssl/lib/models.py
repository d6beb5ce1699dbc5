"""Handles returned by the issuance phases."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class Provenance(str, Enum):
    """Where an artifact came from in this run."""

    GENERATED = "generated"
    REUSED = "reused"
    SUPPLIED = "supplied"


@dataclass(frozen=True)
class CAHandle:
    """Certificate authority key and certificate paths."""

    key_path: Path
    cert_path: Path
    provenance: Provenance


@dataclass(frozen=True)
class CSRHandle:
    """Certificate signing request path.

    key_path is None when the request was supplied by the caller.
    """

    csr_path: Path
    key_path: Path | None
    provenance: Provenance


@dataclass(frozen=True)
class CertHandle:
    """Issued server certificate."""

    cert_path: Path
    serial_number: int


@dataclass(frozen=True)
class IssuanceResult:
    """Everything one run produced, plus the outcome of trust registration.

    trust_error is set when --trust was requested and registration failed.
    """

    ca: CAHandle | None
    csr: CSRHandle | None
    certificate: CertHandle | None
    trusted: bool = False
    trust_error: str | None = None
