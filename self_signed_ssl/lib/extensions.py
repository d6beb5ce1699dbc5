"""OpenSSL-style extensions files for leaf and CA certificates.

Only the subset of the OpenSSL configuration syntax needed for a CA and its
server certificates is understood:

    authorityKeyIdentifier = keyid,issuer
    basicConstraints = critical, CA:FALSE
    keyUsage = digitalSignature, keyEncipherment
    extendedKeyUsage = serverAuth
    subjectKeyIdentifier = hash
    subjectAltName = @alt_names

    [alt_names]
    DNS.1 = example.com
    IP.1 = 127.0.0.1
"""

import ipaddress
from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from cryptography.x509.oid import ExtendedKeyUsageOID

from .errors import ConfigurationError
from .subject import Subject, build_san_block

DEFAULT_SECTION = ""

LEAF_EXTENSIONS_TEMPLATE = """\
authorityKeyIdentifier=keyid,issuer
basicConstraints=CA:FALSE
keyUsage = digitalSignature, nonRepudiation, keyEncipherment, dataEncipherment
subjectAltName = @alt_names

[alt_names]
{san_block}
"""

BUILTIN_CA_EXTENSIONS = """\
[v3_ca]
subjectKeyIdentifier = hash
authorityKeyIdentifier = keyid:always,issuer
basicConstraints = critical, CA:true
keyUsage = critical, keyCertSign, cRLSign
"""

KEY_USAGE_FLAGS = {
    "digitalSignature": "digital_signature",
    "nonRepudiation": "content_commitment",
    "keyEncipherment": "key_encipherment",
    "dataEncipherment": "data_encipherment",
    "keyAgreement": "key_agreement",
    "keyCertSign": "key_cert_sign",
    "cRLSign": "crl_sign",
    "encipherOnly": "encipher_only",
    "decipherOnly": "decipher_only",
}

EXTENDED_KEY_USAGES = {
    "serverAuth": ExtendedKeyUsageOID.SERVER_AUTH,
    "clientAuth": ExtendedKeyUsageOID.CLIENT_AUTH,
    "codeSigning": ExtendedKeyUsageOID.CODE_SIGNING,
    "emailProtection": ExtendedKeyUsageOID.EMAIL_PROTECTION,
    "timeStamping": ExtendedKeyUsageOID.TIME_STAMPING,
    "OCSPSigning": ExtendedKeyUsageOID.OCSP_SIGNING,
}

Sections = dict[str, list[tuple[str, str]]]


@dataclass(frozen=True)
class ExtensionContext:
    """Keys and issuer identity needed to resolve key identifier directives."""

    subject_public_key: RSAPublicKey
    issuer_public_key: RSAPublicKey
    issuer_name: x509.Name
    issuer_serial: int
    issuer_key_identifier: x509.SubjectKeyIdentifier | None = None


def render_leaf_extensions(subject: Subject) -> str:
    """Render the extensions file used to sign a server certificate for subject."""
    return LEAF_EXTENSIONS_TEMPLATE.format(san_block=build_san_block(subject))


def parse_sections(text: str) -> Sections:
    """Parse OpenSSL config text into ordered (key, value) pairs per section.

    Lines before the first [section] header belong to DEFAULT_SECTION.

    Raises:
        ConfigurationError: On a line that is neither a header nor an assignment
    """
    sections: Sections = {DEFAULT_SECTION: []}
    current = DEFAULT_SECTION
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        if line.startswith("[") and line.endswith("]"):
            current = line[1:-1].strip()
            sections.setdefault(current, [])
            continue
        if "=" not in line:
            raise ConfigurationError(f"line {lineno}: expected 'name = value', got {raw!r}")
        key, value = line.split("=", 1)
        sections[current].append((key.strip(), value.strip()))
    return sections


def read_sections(path: Path) -> Sections:
    """Read and parse an extensions file."""
    try:
        text = path.read_text()
    except OSError as e:
        raise ConfigurationError(f"cannot read extensions file {path}: {e}") from e
    return parse_sections(text)


def resolve_ca_section(name: str, extfile_path: Path | None = None) -> list[tuple[str, str]]:
    """Find the CA extensions section by name.

    A section in the caller's extensions file takes precedence over the
    built-in profiles.

    Raises:
        ConfigurationError: If no such section exists
    """
    if extfile_path is not None:
        sections = read_sections(extfile_path)
        if name in sections:
            return sections[name]

    builtin = parse_sections(BUILTIN_CA_EXTENSIONS)
    if name in builtin:
        return builtin[name]
    raise ConfigurationError(f"unknown CA extensions section: {name}")


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _split_critical(value: str) -> tuple[bool, list[str]]:
    items = _split_list(value)
    if items and items[0] == "critical":
        return True, items[1:]
    return False, items


def _basic_constraints(items: list[str]) -> x509.BasicConstraints:
    ca = False
    path_length = None
    for item in items:
        name, _, setting = item.partition(":")
        if name.upper() == "CA":
            ca = setting.strip().upper() == "TRUE"
        elif name.lower() == "pathlen":
            path_length = int(setting)
        else:
            raise ConfigurationError(f"unsupported basicConstraints value: {item}")
    return x509.BasicConstraints(ca=ca, path_length=path_length if ca else None)


def _key_usage(items: list[str]) -> x509.KeyUsage:
    flags = dict.fromkeys(KEY_USAGE_FLAGS.values(), False)
    for item in items:
        if item not in KEY_USAGE_FLAGS:
            raise ConfigurationError(f"unsupported keyUsage value: {item}")
        flags[KEY_USAGE_FLAGS[item]] = True
    return x509.KeyUsage(**flags)


def _extended_key_usage(items: list[str]) -> x509.ExtendedKeyUsage:
    usages = []
    for item in items:
        if item not in EXTENDED_KEY_USAGES:
            raise ConfigurationError(f"unsupported extendedKeyUsage value: {item}")
        usages.append(EXTENDED_KEY_USAGES[item])
    return x509.ExtendedKeyUsage(usages)


def _general_name(kind: str, value: str) -> x509.GeneralName:
    if kind == "DNS":
        return x509.DNSName(value)
    if kind == "IP":
        return x509.IPAddress(ipaddress.ip_address(value))
    if kind == "email":
        return x509.RFC822Name(value)
    if kind == "URI":
        return x509.UniformResourceIdentifier(value)
    raise ConfigurationError(f"unsupported subjectAltName type: {kind}")


def _subject_alt_name(items: list[str], sections: Sections) -> x509.SubjectAlternativeName:
    names: list[x509.GeneralName] = []
    for item in items:
        if item.startswith("@"):
            section = item[1:]
            if section not in sections:
                raise ConfigurationError(f"subjectAltName references missing section [{section}]")
            for key, value in sections[section]:
                names.append(_general_name(key.split(".", 1)[0], value))
        else:
            kind, sep, value = item.partition(":")
            if not sep:
                raise ConfigurationError(f"malformed subjectAltName entry: {item}")
            names.append(_general_name(kind, value))
    if not names:
        raise ConfigurationError("subjectAltName is empty")
    return x509.SubjectAlternativeName(names)


def _authority_key_identifier(
    items: list[str], context: ExtensionContext
) -> x509.AuthorityKeyIdentifier:
    with_issuer = False
    for item in items:
        if item not in ("keyid", "keyid:always", "issuer", "issuer:always"):
            raise ConfigurationError(f"unsupported authorityKeyIdentifier value: {item}")
        if item == "issuer:always":
            with_issuer = True

    if context.issuer_key_identifier is not None:
        key_identifier = x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(
            context.issuer_key_identifier
        ).key_identifier
    else:
        key_identifier = x509.AuthorityKeyIdentifier.from_issuer_public_key(
            context.issuer_public_key
        ).key_identifier
    if not with_issuer:
        return x509.AuthorityKeyIdentifier(key_identifier, None, None)
    return x509.AuthorityKeyIdentifier(
        key_identifier,
        [x509.DirectoryName(context.issuer_name)],
        context.issuer_serial,
    )


def build_extensions(
    directives: list[tuple[str, str]],
    context: ExtensionContext,
    sections: Sections | None = None,
) -> list[tuple[x509.ExtensionType, bool]]:
    """Translate extension directives into (extension, critical) pairs.

    Args:
        directives: (name, value) pairs of one section
        context: Keys and issuer identity for key identifier directives
        sections: All sections of the same file, for @section references

    Raises:
        ConfigurationError: On an unsupported directive or value
    """
    sections = sections or {}
    extensions: list[tuple[x509.ExtensionType, bool]] = []
    for name, value in directives:
        critical, items = _split_critical(value)
        try:
            if name == "basicConstraints":
                extension: x509.ExtensionType = _basic_constraints(items)
            elif name == "keyUsage":
                extension = _key_usage(items)
            elif name == "extendedKeyUsage":
                extension = _extended_key_usage(items)
            elif name == "subjectKeyIdentifier":
                if items != ["hash"]:
                    raise ConfigurationError(f"unsupported subjectKeyIdentifier value: {value}")
                extension = x509.SubjectKeyIdentifier.from_public_key(context.subject_public_key)
            elif name == "authorityKeyIdentifier":
                extension = _authority_key_identifier(items, context)
            elif name == "subjectAltName":
                extension = _subject_alt_name(items, sections)
            else:
                raise ConfigurationError(f"unsupported extension: {name}")
        except ValueError as e:
            if isinstance(e, ConfigurationError):
                raise
            raise ConfigurationError(f"invalid {name} value {value!r}: {e}") from e
        extensions.append((extension, critical))
    return extensions
