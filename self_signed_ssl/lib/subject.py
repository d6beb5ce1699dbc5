"""Subject distinguished name and Subject Alternative Name construction."""

import re
from dataclasses import dataclass

from cryptography import x509
from cryptography.x509 import oid

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Subject:
    """X.509 subject fields plus the extra SAN entries.

    Every field except common_name may be blank and is then left out of the
    subject entirely. alt_names is the raw comma-separated SAN list.
    """

    common_name: str
    country: str = ""
    state: str = ""
    locality: str = ""
    organization: str = ""
    organizational_unit: str = ""
    email: str = ""
    alt_names: str = ""

    def fields(self) -> list[tuple[str, str]]:
        """Return (short name, value) pairs in DN order, blanks removed."""
        ordered = [
            ("C", self.country),
            ("ST", self.state),
            ("L", self.locality),
            ("O", self.organization),
            ("OU", self.organizational_unit),
            ("CN", self.common_name),
            ("emailAddress", self.email),
        ]
        return [(name, value) for name, value in ordered if value]

    def to_x509_name(self) -> x509.Name:
        """Convert to cryptography x509.Name for request and certificate generation."""
        return x509.Name(
            [x509.NameAttribute(_NAME_OIDS[name], value) for name, value in self.fields()]
        )

    @property
    def base_filename(self) -> str:
        """Artifact base name derived from the common name."""
        return base_filename(self.common_name)


_NAME_OIDS = {
    "C": oid.NameOID.COUNTRY_NAME,
    "ST": oid.NameOID.STATE_OR_PROVINCE_NAME,
    "L": oid.NameOID.LOCALITY_NAME,
    "O": oid.NameOID.ORGANIZATION_NAME,
    "OU": oid.NameOID.ORGANIZATIONAL_UNIT_NAME,
    "CN": oid.NameOID.COMMON_NAME,
    "emailAddress": oid.NameOID.EMAIL_ADDRESS,
}


def base_filename(common_name: str) -> str:
    """Strip a leading wildcard label: '*.example.com' -> 'example.com'."""
    if common_name.startswith("*."):
        return common_name[2:]
    return common_name


def build_dn_string(subject: Subject) -> str:
    """Render subject as an OpenSSL-style DN string, e.g. '/C=US/CN=example.com'."""
    return "".join(f"/{name}={value}" for name, value in subject.fields())


def build_san_names(subject: Subject) -> list[str]:
    """Return SAN host names: common name first, then each extra entry.

    Whitespace inside a name is removed and blank entries are dropped.
    """
    tokens = [subject.common_name, *subject.alt_names.split(",")]
    names = []
    for token in tokens:
        name = _WHITESPACE.sub("", token)
        if name:
            names.append(name)
    return names


def build_san_block(subject: Subject) -> str:
    """Render SAN names as numbered 'DNS.<n> = <name>' lines starting at 1."""
    return "\n".join(
        f"DNS.{index} = {name}" for index, name in enumerate(build_san_names(subject), start=1)
    )
