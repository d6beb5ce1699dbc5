"""Interactive completion of subject fields missing from the command line."""

from collections.abc import Callable

from .errors import ConfigurationError
from .options import SubjectOptions
from .subject import Subject

# Same labels and bracketed defaults as the stock `openssl req` prompts
COUNTRY_PROMPT = ("Country Name (2 letter code)", "AU")
STATE_PROMPT = ("State or Province Name (full name)", "Some-State")
LOCALITY_PROMPT = ("Locality Name (eg, city)", "")
ORGANIZATION_PROMPT = ("Organization Name (eg, company)", "Internet Widgits Pty Ltd")
UNIT_PROMPT = ("Organizational Unit Name (eg, section)", "")
COMMON_NAME_PROMPT = ("Common Name (e.g. server FQDN or YOUR name)", "")
ALT_NAMES_PROMPT = ("Subject Alternative Names, comma separated (e.g. www.example.com)", "")
EMAIL_PROMPT = ("Email Address", "")


class PromptEngine:
    """Fills unset subject fields from standard input.

    In non-interactive mode only the common name is asked for.
    """

    def __init__(self, interactive: bool, reader: Callable[[str], str] = input) -> None:
        """Initialize prompt engine.

        Args:
            interactive: Whether optional fields may be prompted for
            reader: Line reader, receives the prompt text (default: input)
        """
        self.interactive = interactive
        self.reader = reader

    def ask(self, label: str, default: str = "") -> str:
        """Prompt once; an empty answer (or end of input) yields the default."""
        try:
            answer = self.reader(f"{label} [{default}]: ")
        except EOFError:
            answer = ""
        return answer.strip() or default

    def _optional(self, given: str | None, prompt: tuple[str, str]) -> str:
        if given is not None:
            return given
        if not self.interactive:
            return ""
        return self.ask(*prompt)

    def complete(self, given: SubjectOptions) -> Subject:
        """Return a full Subject, prompting for whatever the mode allows.

        Raises:
            ConfigurationError: If no common name is available afterwards
        """
        country = self._optional(given.country, COUNTRY_PROMPT)
        state = self._optional(given.state, STATE_PROMPT)
        locality = self._optional(given.locality, LOCALITY_PROMPT)
        organization = self._optional(given.organization, ORGANIZATION_PROMPT)
        unit = self._optional(given.organizational_unit, UNIT_PROMPT)

        common_name = (given.common_name or "").strip()
        if not common_name:
            common_name = self.ask(*COMMON_NAME_PROMPT)
        if not common_name:
            raise ConfigurationError("common name is required (use -n/--common-name)")

        if given.alt_names is not None:
            alt_names = given.alt_names
        elif self.interactive and not given.common_name:
            alt_names = self.ask(*ALT_NAMES_PROMPT)
        else:
            alt_names = ""

        email = self._optional(given.email, EMAIL_PROMPT)

        return Subject(
            common_name=common_name,
            country=country,
            state=state,
            locality=locality,
            organization=organization,
            organizational_unit=unit,
            email=email,
            alt_names=alt_names,
        )
