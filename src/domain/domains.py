"""
Email domain classification against the approved tier lists.

A configured suffix containing a dot ("usafa.edu") matches the email's
domain exactly or any subdomain of it. A bare label ("mil") only matches
as the final label, so "mil" never matches "user@family.com".
"""

from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from .models import DomainTierConfig


@dataclass(frozen=True)
class DomainTiers:
    """Tiers an email's domain qualifies for."""

    tier2: bool
    tier4: bool

    @property
    def eligible(self) -> bool:
        return self.tier2 or self.tier4


def is_valid_format(email: str | None) -> bool:
    """Syntax-only email check; blank is invalid."""
    if email is None or not email.strip():
        return False
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _matches(email: str, suffix: str) -> bool:
    if "." in suffix:
        return email.endswith("@" + suffix) or email.endswith("." + suffix)
    return email.endswith("." + suffix)


def classify(config: DomainTierConfig, email: str) -> DomainTiers:
    email = email.strip().lower()
    return DomainTiers(
        tier2=any(_matches(email, suffix) for suffix in config.tier2_domains),
        tier4=any(_matches(email, suffix) for suffix in config.tier4_domains),
    )


def is_domain_eligible(config: DomainTierConfig, email: str | None) -> bool:
    """True if the email is well formed and matches at least one approved suffix."""
    if not is_valid_format(email):
        return False
    return classify(config, email).eligible
