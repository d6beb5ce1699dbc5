"""Tests for the proxy stack certificate commands."""

import stat
from pathlib import Path

from cryptography import x509

from self_signed_ssl.lib.cert_utils import deserialize_certificate
from self_signed_ssl.lib.stack import clean_stack_certs, generate_stack_certs
from self_signed_ssl.lib.trust import TrustRegistrar
from self_signed_ssl.scripts.stack_certs import main


class TestGenerateStackCerts:
    """Tests for generate_stack_certs."""

    def test_generates_and_copies_wildcard_certificate(self, tmp_path: Path) -> None:
        """Key and certificate for *.docker.localhost land in the proxy directory."""
        cert_dir = tmp_path / "traefik-data" / "certs"
        output_dir = tmp_path / "self-signed-ssl" / "docker-localhost"

        result = generate_stack_certs(cert_dir, output_dir, TrustRegistrar([]))

        assert result.generated is True
        assert result.cert_path == cert_dir / "docker.localhost.crt"
        assert result.key_path == cert_dir / "docker.localhost.key"
        assert result.ca_cert_path == output_dir / "CA.pem"
        assert stat.S_IMODE(result.key_path.stat().st_mode) == 0o600

        cert = deserialize_certificate(result.cert_path.read_bytes())
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
        assert san.get_values_for_type(x509.DNSName) == ["*.docker.localhost", "*.docker.localhost"]
        assert cert.subject.rfc4514_string() == (
            "CN=*.docker.localhost,OU=DevTeam,O=LocalDevelopment,"
            "L=LocalDevCity,ST=LocalDevState,C=XX"
        )

    def test_skips_when_certificate_present(self, tmp_path: Path) -> None:
        """Existing proxy certificate means nothing is generated."""
        cert_dir = tmp_path / "certs"
        cert_dir.mkdir()
        (cert_dir / "docker.localhost.crt").write_text("existing")
        output_dir = tmp_path / "out"

        result = generate_stack_certs(cert_dir, output_dir, TrustRegistrar([]))

        assert result.generated is False
        assert not output_dir.exists()
        assert (cert_dir / "docker.localhost.crt").read_text() == "existing"


class TestCleanStackCerts:
    """Tests for clean_stack_certs."""

    def test_removes_copies_and_output_dir(self, tmp_path: Path) -> None:
        """Clean removes the installed pair and the whole output directory."""
        cert_dir = tmp_path / "certs"
        output_dir = tmp_path / "out"
        generate_stack_certs(cert_dir, output_dir, TrustRegistrar([]))

        clean_stack_certs(cert_dir, output_dir)

        assert list(cert_dir.iterdir()) == []
        assert not output_dir.exists()

    def test_clean_is_safe_when_nothing_exists(self, tmp_path: Path) -> None:
        """Cleaning twice does not fail."""
        clean_stack_certs(tmp_path / "certs", tmp_path / "out")


class TestMain:
    """Tests for the self-signed-ssl-stack entry point."""

    def test_generate_then_clean(self, tmp_path: Path) -> None:
        """generate and clean subcommands exit 0."""
        cert_dir = tmp_path / "certs"
        output_dir = tmp_path / "out"
        common = ["--cert-dir", str(cert_dir), "--output-dir", str(output_dir)]

        assert main([*common, "generate"]) == 0
        assert (cert_dir / "docker.localhost.crt").exists()
        assert main([*common, "generate"]) == 0

        assert main([*common, "clean"]) == 0
        assert not output_dir.exists()
