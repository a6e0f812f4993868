"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock for day-keyed invite digests
- Domain tier and invite configuration
- A fully valid registration form
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.domain.models import DomainTierConfig, InviteSecretConfig


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0, hours: int = 0) -> None:
        self.now += timedelta(days=days, hours=hours)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def invite_config() -> InviteSecretConfig:
    return InviteSecretConfig(secret="s3cr3t-for-tests", valid_days=5)


@pytest.fixture
def domain_config() -> DomainTierConfig:
    return DomainTierConfig(
        tier2_domains=("unicorns.com", "trex.scary"),
        tier4_domains=("mil", "gov", "usafa.edu", "afit.edu"),
    )


@pytest.fixture
def valid_form() -> dict[str, str]:
    return {
        "username": "tester",
        "firstName": "Jone",
        "lastName": "Doe",
        "email": "test@gmail.com",
        "user.attributes.affiliation": "AF",
        "user.attributes.rank": "E2",
        "user.attributes.organization": "Com",
        "user.attributes.location": "42",
    }
