"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.

The `context` argument handed to IdentityResolver is opaque to the
domain: it is whatever the calling surface uses to describe the current
request (for HTTP, the request object).
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from .models import Decision, Diagnostic, RequiredAction, Tier


class Account(Protocol):
    """Minimal view of a persisted user account."""

    id: Any
    username: str
    email: str


class IdentityResolver(Protocol):
    """Port interface for certificate-based identity."""

    def resolve_identity_username(self, context: Any) -> str | None:
        """
        Resolve the stable username of a certificate already presented.

        Returns:
            The certificate identity, or None when the request carries none
        """
        ...

    def is_identity_already_registered(self, context: Any) -> bool:
        """Return True if an account is already bound to the request's certificate identity."""
        ...


class UserDirectory(Protocol):
    """Port interface for user-record lookup and mutation."""

    def find_by_email(self, email: str, realm: str) -> Account | None:
        """
        Look up an existing account by email in a realm.

        Args:
            email: Email address as submitted (implementations compare case-insensitively)
            realm: Realm name

        Returns:
            The account if one exists, otherwise None
        """
        ...

    def join_group(self, account: Account, tier: Tier) -> None:
        """Add the account to the group backing a trust tier."""
        ...

    def set_attribute(self, account: Account, key: str, value: str) -> None:
        """Store a single-valued durable attribute on the account."""
        ...

    def add_required_action(self, account: Account, action: RequiredAction) -> None:
        """Attach a mandatory post-registration action to the account."""
        ...


class RegistrationEvents(Protocol):
    """Port interface for outcome signaling. Exactly one outcome per submission."""

    def report_error(self, event_code: Decision) -> None:
        """Record the coarse-grained event code of a rejected submission."""
        ...

    def report_validation_failure(
        self, fields: Mapping[str, str | None], diagnostics: Sequence[Diagnostic]
    ) -> None:
        """Hand back the submitted fields with every accumulated diagnostic."""
        ...

    def report_success(self, fields: Mapping[str, str | None]) -> None:
        """Signal that the submission was accepted."""
        ...
