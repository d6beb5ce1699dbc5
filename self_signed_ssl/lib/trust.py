"""Registration of the CA certificate in the operating system trust store."""

import os
import platform
import shutil
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from pathlib import Path

from .errors import TrustError
from .logging_config import LOGGER
from .models import CAHandle

MACOS_SYSTEM_KEYCHAIN = Path("/Library/Keychains/System.keychain")
LINUX_PRIMARY_ANCHORS = Path("/etc/pki/ca-trust/source/anchors")
LINUX_FALLBACK_ANCHORS = Path("/usr/local/share/ca-certificates")

Runner = Callable[..., subprocess.CompletedProcess]


def _elevated(command: Sequence[str]) -> list[str]:
    """Prefix command with sudo unless already running as root."""
    if hasattr(os, "geteuid") and os.geteuid() == 0:
        return list(command)
    return ["sudo", *command]


class TrustStrategy(ABC):
    """One way of adding a CA certificate to a system trust store."""

    name = "trust"

    def __init__(self, run: Runner = subprocess.run, which: Callable = shutil.which) -> None:
        self.run = run
        self.which = which

    @abstractmethod
    def available(self) -> bool:
        """Whether the tools and directories this strategy needs exist."""

    @abstractmethod
    def install(self, ca_cert_path: Path, name: str) -> None:
        """Add ca_cert_path to the trust store under name.

        Raises:
            TrustError: If any command fails
        """

    def _execute(self, command: Sequence[str]) -> None:
        command = _elevated(command)
        LOGGER.info("Running: %s", " ".join(command))
        try:
            self.run(command, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
            raise TrustError(f"{self.name}: '{' '.join(command)}' failed: {detail}") from e
        except OSError as e:
            raise TrustError(f"{self.name}: cannot run '{command[0]}': {e}") from e


class MacOSTrust(TrustStrategy):
    """Adds the CA as a trusted root to the macOS system keychain."""

    name = "macos-keychain"

    def available(self) -> bool:
        return self.which("security") is not None

    def install(self, ca_cert_path: Path, name: str) -> None:
        self._execute(
            [
                "security",
                "add-trusted-cert",
                "-d",
                "-r",
                "trustRoot",
                "-k",
                str(MACOS_SYSTEM_KEYCHAIN),
                str(ca_cert_path),
            ]
        )


class AnchorDirectoryTrust(TrustStrategy):
    """Copies the CA into an anchors directory and refreshes the system bundle.

    The copy is skipped when the anchor file already exists; the refresh
    always runs.
    """

    anchors_dir: Path
    suffix: str
    refresh_command: tuple[str, ...]

    def available(self) -> bool:
        return self.anchors_dir.is_dir() and self.which(self.refresh_command[0]) is not None

    def anchor_path(self, name: str) -> Path:
        return self.anchors_dir / f"{name}{self.suffix}"

    def install(self, ca_cert_path: Path, name: str) -> None:
        target = self.anchor_path(name)
        if target.exists():
            LOGGER.info("Trust anchor already present: %s", target)
        else:
            self._execute(["cp", str(ca_cert_path), str(target)])
        self._execute(list(self.refresh_command))


class LinuxPrimaryTrust(AnchorDirectoryTrust):
    """p11-kit style trust anchors (Fedora, RHEL, Arch)."""

    name = "ca-trust"
    anchors_dir = LINUX_PRIMARY_ANCHORS
    suffix = ".pem"
    refresh_command = ("update-ca-trust", "extract")


class LinuxFallbackTrust(AnchorDirectoryTrust):
    """Debian style local CA certificates."""

    name = "ca-certificates"
    anchors_dir = LINUX_FALLBACK_ANCHORS
    suffix = ".crt"
    refresh_command = ("update-ca-certificates",)


class UnsupportedTrust(TrustStrategy):
    """Placeholder for platforms without a known trust store."""

    name = "unsupported"

    def __init__(self, system: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.system = system

    def available(self) -> bool:
        return True

    def install(self, ca_cert_path: Path, name: str) -> None:
        raise TrustError(f"unsupported operating system for --trust: {self.system or 'unknown'}")


def select_strategies(system: str | None = None, **kwargs) -> list[TrustStrategy]:
    """Return trust strategies for the host OS, in the order they should be tried.

    Args:
        system: platform.system() value (detected when None)
        **kwargs: Passed to every strategy (run, which)
    """
    if system is None:
        system = platform.system()
    if system == "Darwin":
        return [MacOSTrust(**kwargs)]
    if system == "Linux":
        return [LinuxPrimaryTrust(**kwargs), LinuxFallbackTrust(**kwargs)]
    return [UnsupportedTrust(system, **kwargs)]


class TrustRegistrar:
    """Tries each strategy in turn; the first success wins."""

    def __init__(self, strategies: list[TrustStrategy]) -> None:
        self.strategies = strategies

    def trust_ca(self, ca: CAHandle | None, enabled: bool, name: str) -> bool:
        """Install the CA certificate into the trust store when enabled.

        Args:
            ca: CA handle (None when the run has no CA)
            enabled: Value of --trust
            name: Anchor file base name

        Returns:
            True if the CA was installed, False if there was nothing to do

        Raises:
            TrustError: If every strategy was unavailable or failed
        """
        if not enabled or ca is None or not ca.cert_path.exists():
            return False

        failures = []
        for strategy in self.strategies:
            if not strategy.available():
                LOGGER.info("Trust strategy %s not available, skipping", strategy.name)
                failures.append(f"{strategy.name}: not available")
                continue
            try:
                strategy.install(ca.cert_path, name)
            except TrustError as e:
                LOGGER.warning("%s", e)
                failures.append(str(e))
                continue
            LOGGER.info("CA certificate trusted via %s", strategy.name)
            return True

        raise TrustError("could not add CA to trust store: " + "; ".join(failures))
