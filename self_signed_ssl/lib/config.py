"""Issuance configuration dataclass and defaults."""

import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError

DEFAULT_KEY_SIZE = 2048
DEFAULT_VALIDITY_DAYS = 3650

CA_KEY_FILENAME = "CA.key"
CA_CERT_FILENAME = "CA.pem"

DEFAULT_CA_EXTENSIONS = "v3_ca"


@dataclass(frozen=True)
class IssuanceConfig:
    """Resolved run parameters, immutable once built from the command line."""

    output_dir: Path
    validity_days: int = DEFAULT_VALIDITY_DAYS
    key_size: int = DEFAULT_KEY_SIZE
    interactive: bool = True
    create_path: bool = False
    trust: bool = False
    ca_only: bool = False
    csr_only: bool = False
    ca_extensions: str | None = None
    ca_cert_path: Path | None = None
    ca_key_path: Path | None = None
    csr_path: Path | None = None
    extfile_path: Path | None = None

    @property
    def ca_supplied(self) -> bool:
        """True when the caller passed both an existing CA cert and key."""
        return self.ca_cert_path is not None and self.ca_key_path is not None

    @property
    def display_output_dir(self) -> str:
        """Output directory rendered with a trailing path separator."""
        rendered = str(self.output_dir)
        return rendered if rendered.endswith(os.sep) else rendered + os.sep

    def output_path(self, filename: str) -> Path:
        """Return path of an artifact inside the output directory."""
        return self.output_dir / filename

    def validate(self) -> None:
        """Check cross-flag consistency and referenced files.

        Raises:
            ConfigurationError: On the first inconsistency found
        """
        if self.ca_only and self.csr_only:
            raise ConfigurationError("--ca-only and --csr-only are mutually exclusive")

        if (self.ca_cert_path is None) != (self.ca_key_path is None):
            raise ConfigurationError("--ca and --ca-key must be given together")

        for flag, path in (
            ("--ca", self.ca_cert_path),
            ("--ca-key", self.ca_key_path),
            ("--csr", self.csr_path),
            ("--extfile", self.extfile_path),
        ):
            if path is not None and not path.is_file():
                raise ConfigurationError(f"{flag} file not found: {path}")

        if self.output_dir.exists() and not self.output_dir.is_dir():
            raise ConfigurationError(f"output path is not a directory: {self.output_dir}")

        if not self.output_dir.is_dir() and not self.create_path:
            raise ConfigurationError(
                f"output directory does not exist: {self.output_dir} "
                "(use --path-create to create it)"
            )

    def ensure_output_dir(self) -> None:
        """Create the output directory when --path-create allows it."""
        if self.output_dir.is_dir():
            return
        if not self.create_path:
            raise ConfigurationError(f"output directory does not exist: {self.output_dir}")
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"cannot create output directory {self.output_dir}: {e}"
            ) from e
