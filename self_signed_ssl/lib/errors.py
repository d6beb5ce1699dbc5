"""Exception hierarchy for certificate issuance."""


class SelfSignedSSLError(Exception):
    """Base class for all issuance failures."""


class UsageError(SelfSignedSSLError):
    """Unknown flag or malformed flag value on the command line."""


class ConfigurationError(SelfSignedSSLError, ValueError):
    """Resolved configuration is inconsistent or references missing files."""


class GenerationError(SelfSignedSSLError, RuntimeError):
    """Key, request or certificate generation failed."""


class TrustError(SelfSignedSSLError, RuntimeError):
    """CA certificate could not be registered in the OS trust store."""
