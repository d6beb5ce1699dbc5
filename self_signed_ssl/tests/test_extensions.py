"""Tests for extensions file rendering and parsing."""

import ipaddress
from dataclasses import replace
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.x509.oid import ExtendedKeyUsageOID

from self_signed_ssl.lib.errors import ConfigurationError
from self_signed_ssl.lib.extensions import (
    DEFAULT_SECTION,
    ExtensionContext,
    build_extensions,
    parse_sections,
    render_leaf_extensions,
    resolve_ca_section,
)
from self_signed_ssl.lib.subject import Subject


@pytest.fixture
def context(ca_key: RSAPrivateKey, server_key: RSAPrivateKey) -> ExtensionContext:
    """Return context for a server key issued by the CA key."""
    return ExtensionContext(
        subject_public_key=server_key.public_key(),
        issuer_public_key=ca_key.public_key(),
        issuer_name=Subject(common_name="Test Root CA").to_x509_name(),
        issuer_serial=1234,
    )


class TestRenderLeafExtensions:
    """Tests for render_leaf_extensions."""

    def test_contains_constraints_and_alt_names(self, subject: Subject) -> None:
        """Rendered file has the leaf constraints and the SAN section."""
        text = render_leaf_extensions(subject)

        assert "authorityKeyIdentifier=keyid,issuer" in text
        assert "basicConstraints=CA:FALSE" in text
        assert "subjectAltName = @alt_names" in text
        assert "[alt_names]\nDNS.1 = example.com\nDNS.2 = www.example.com\n" in text

    def test_round_trips_through_parser(self, subject: Subject) -> None:
        """Parser reads the rendered file back into sections."""
        sections = parse_sections(render_leaf_extensions(subject))

        names = [name for name, _ in sections[DEFAULT_SECTION]]
        assert names == [
            "authorityKeyIdentifier",
            "basicConstraints",
            "keyUsage",
            "subjectAltName",
        ]
        assert sections["alt_names"][0] == ("DNS.1", "example.com")


class TestParseSections:
    """Tests for parse_sections."""

    def test_comments_and_blank_lines_ignored(self) -> None:
        """Comments and blank lines do not produce entries."""
        sections = parse_sections("# header\n\nbasicConstraints = CA:FALSE # leaf\n[s]\nDNS.1=a\n")

        assert sections[DEFAULT_SECTION] == [("basicConstraints", "CA:FALSE")]
        assert sections["s"] == [("DNS.1", "a")]

    def test_malformed_line_rejected(self) -> None:
        """A line without '=' is an error."""
        with pytest.raises(ConfigurationError, match="line 2"):
            parse_sections("basicConstraints = CA:FALSE\nnonsense\n")


class TestBuildExtensions:
    """Tests for build_extensions."""

    def test_leaf_directives(self, subject: Subject, context: ExtensionContext) -> None:
        """Rendered leaf file yields AKI, basic constraints, key usage and SAN."""
        sections = parse_sections(render_leaf_extensions(subject))
        extensions = build_extensions(sections[DEFAULT_SECTION], context, sections)

        by_type = {type(ext): (ext, critical) for ext, critical in extensions}
        basic, basic_critical = by_type[x509.BasicConstraints]
        assert basic.ca is False
        assert basic_critical is False

        usage, _ = by_type[x509.KeyUsage]
        assert usage.digital_signature is True
        assert usage.content_commitment is True
        assert usage.key_cert_sign is False

        san, _ = by_type[x509.SubjectAlternativeName]
        assert san.get_values_for_type(x509.DNSName) == [
            "example.com",
            "www.example.com",
            "api.example.com",
        ]

        aki, _ = by_type[x509.AuthorityKeyIdentifier]
        expected = x509.AuthorityKeyIdentifier.from_issuer_public_key(context.issuer_public_key)
        assert aki.key_identifier == expected.key_identifier
        assert aki.authority_cert_issuer is None

    def test_critical_prefix(self, context: ExtensionContext) -> None:
        """'critical,' marks the extension critical."""
        extensions = build_extensions([("basicConstraints", "critical, CA:true, pathlen:0")], context)

        ext, critical = extensions[0]
        assert critical is True
        assert ext.ca is True
        assert ext.path_length == 0

    def test_inline_alt_names(self, context: ExtensionContext) -> None:
        """Inline DNS: and IP: entries are supported."""
        extensions = build_extensions(
            [("subjectAltName", "DNS:localhost, IP:127.0.0.1")], context
        )

        san = extensions[0][0]
        assert san.get_values_for_type(x509.DNSName) == ["localhost"]
        assert san.get_values_for_type(x509.IPAddress) == [ipaddress.ip_address("127.0.0.1")]

    def test_extended_key_usage(self, context: ExtensionContext) -> None:
        """extendedKeyUsage names map to OIDs."""
        extensions = build_extensions([("extendedKeyUsage", "serverAuth, clientAuth")], context)

        assert ExtendedKeyUsageOID.SERVER_AUTH in extensions[0][0]

    def test_aki_with_issuer_always(self, context: ExtensionContext) -> None:
        """issuer:always adds issuer name and serial."""
        extensions = build_extensions(
            [("authorityKeyIdentifier", "keyid:always,issuer:always")], context
        )

        aki = extensions[0][0]
        assert aki.authority_cert_serial_number == 1234

    def test_aki_keyid_prefers_issuer_ski(self, context: ExtensionContext) -> None:
        """keyid copies the issuer's subject key identifier when one is known."""
        ski = x509.SubjectKeyIdentifier(b"\xab" * 20)
        with_ski = replace(context, issuer_key_identifier=ski)

        extensions = build_extensions([("authorityKeyIdentifier", "keyid,issuer")], with_ski)

        assert extensions[0][0].key_identifier == b"\xab" * 20

    @pytest.mark.parametrize(
        "directive",
        [
            ("nameConstraints", "permitted;DNS:example.com"),
            ("keyUsage", "everything"),
            ("subjectAltName", "@missing"),
            ("subjectAltName", "IP:not-an-ip"),
            ("basicConstraints", "CA:true, pathlen:x"),
        ],
    )
    def test_unsupported_values_rejected(
        self, context: ExtensionContext, directive: tuple[str, str]
    ) -> None:
        """Unknown directives and bad values are configuration errors."""
        with pytest.raises(ConfigurationError):
            build_extensions([directive], context)


class TestResolveCaSection:
    """Tests for resolve_ca_section."""

    def test_builtin_v3_ca(self) -> None:
        """Built-in v3_ca profile is available."""
        names = [name for name, _ in resolve_ca_section("v3_ca")]
        assert "basicConstraints" in names
        assert "subjectKeyIdentifier" in names

    def test_section_from_extfile_wins(self, tmp_path: Path) -> None:
        """A section in the caller's extensions file overrides the built-in one."""
        extfile = tmp_path / "ca.ext"
        extfile.write_text("[v3_ca]\nbasicConstraints = critical, CA:true, pathlen:0\n")

        assert resolve_ca_section("v3_ca", extfile) == [
            ("basicConstraints", "critical, CA:true, pathlen:0")
        ]

    def test_unknown_section_rejected(self) -> None:
        """Unknown section names are configuration errors."""
        with pytest.raises(ConfigurationError, match="unknown CA extensions section"):
            resolve_ca_section("no_such_section")
