"""
Domain models - Immutable value objects for one registration submission.

Everything here is created and consumed within a single validation call.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from .exceptions import ConfigurationError

# Form-encoded field names submitted by the registration page
FIELD_USERNAME = "username"
FIELD_FIRST_NAME = "firstName"
FIELD_LAST_NAME = "lastName"
FIELD_EMAIL = "email"
FIELD_AFFILIATION = "user.attributes.affiliation"
FIELD_RANK = "user.attributes.rank"
FIELD_ORGANIZATION = "user.attributes.organization"
FIELD_INVITE = "invite"

# Diagnostics not tied to a single input
FORM_LEVEL = ""


class Decision(str, Enum):
    """
    Terminal decision for a submission.

    Values double as the event codes reported to the outcome sink.
    """

    ACCEPTED = "accepted"
    INVALID_REGISTRATION = "invalid_registration"
    EMAIL_IN_USE = "email_in_use"


class Tier(str, Enum):
    """Trust tiers in ascending order of impact level."""

    TIER2 = "tier2"
    TIER4 = "tier4"
    TIER5 = "tier5"


class RequiredAction(str, Enum):
    """Actions the account must complete on first login."""

    VERIFY_EMAIL = "VERIFY_EMAIL"
    TERMS_AND_CONDITIONS = "TERMS_AND_CONDITIONS"
    CONFIGURE_TOTP = "CONFIGURE_TOTP"


@dataclass(frozen=True)
class RegistrationSubmission:
    """Fields of one registration request. Absent values are None."""

    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    affiliation: str | None = None
    rank: str | None = None
    organization: str | None = None
    invite: str | None = None
    identity_username: str | None = None

    @classmethod
    def from_form(
        cls, form: Mapping[str, str], identity_username: str | None = None
    ) -> "RegistrationSubmission":
        """Build a submission from decoded form parameters."""
        return cls(
            username=form.get(FIELD_USERNAME),
            first_name=form.get(FIELD_FIRST_NAME),
            last_name=form.get(FIELD_LAST_NAME),
            email=form.get(FIELD_EMAIL),
            affiliation=form.get(FIELD_AFFILIATION),
            rank=form.get(FIELD_RANK),
            organization=form.get(FIELD_ORGANIZATION),
            invite=form.get(FIELD_INVITE),
            identity_username=identity_username,
        )

    def as_fields(self) -> dict[str, str | None]:
        """Field map keyed by form field name, as handed to the outcome sink."""
        return {
            FIELD_USERNAME: self.username,
            FIELD_FIRST_NAME: self.first_name,
            FIELD_LAST_NAME: self.last_name,
            FIELD_EMAIL: self.email,
            FIELD_AFFILIATION: self.affiliation,
            FIELD_RANK: self.rank,
            FIELD_ORGANIZATION: self.organization,
            FIELD_INVITE: self.invite,
        }


@dataclass(frozen=True)
class Diagnostic:
    """One field-scoped (or form-level, field_name == "") validation failure."""

    field_name: str
    message: str


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one validation pass."""

    decision: Decision
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def accepted(self) -> bool:
        return self.decision is Decision.ACCEPTED

    @property
    def fields(self) -> set[str]:
        return {d.field_name for d in self.diagnostics}


@dataclass(frozen=True)
class InviteSecretConfig:
    """Shared invite secret and the number of trailing days a token stays valid."""

    secret: str
    valid_days: int

    def __post_init__(self) -> None:
        if not self.secret:
            raise ConfigurationError("Invite secret must not be empty")
        if isinstance(self.valid_days, bool) or not isinstance(self.valid_days, int):
            raise ConfigurationError(f"Invite days must be an integer, got {self.valid_days!r}")
        if self.valid_days < 1:
            raise ConfigurationError(f"Invite days must be positive, got {self.valid_days}")


@dataclass(frozen=True)
class DomainTierConfig:
    """Approved email domain suffixes per tier, lower-cased, in configured order."""

    tier2_domains: tuple[str, ...] = ("mil",)
    tier4_domains: tuple[str, ...] = ("mil",)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tier2_domains", _normalize_suffixes(self.tier2_domains))
        object.__setattr__(self, "tier4_domains", _normalize_suffixes(self.tier4_domains))

    @classmethod
    def from_delimited(cls, tier2: str, tier4: str, separator: str = "##") -> "DomainTierConfig":
        """Parse the legacy "##"-separated domain list strings."""
        return cls(tuple(tier2.split(separator)), tuple(tier4.split(separator)))


def _normalize_suffixes(suffixes: tuple[str, ...]) -> tuple[str, ...]:
    # ".mil" and "mil" are the same suffix; empty entries are dropped
    seen: dict[str, None] = {}
    for suffix in suffixes:
        cleaned = suffix.strip().lower().lstrip(".")
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


@dataclass(frozen=True)
class TierPlan:
    """What TierAssignment will apply to a freshly accepted account."""

    tiers: frozenset[Tier]
    attributes: dict[str, str] = field(default_factory=dict)
    required_actions: tuple[RequiredAction, ...] = ()


@dataclass(frozen=True)
class InviteLink:
    """Result of invite-link issuance."""

    issued: bool
    valid_days: int = 0
    link: str = ""
