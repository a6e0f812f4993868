"""
Registration domain service - Eligibility and validation pipeline.

This module decides whether a self-service registration may proceed.
Every rule runs on every submission and diagnostics accumulate, so the
registrant sees all problems with the form at once.

Validation Pipeline
===================

States:
- COLLECTING: rules 1-5 append diagnostics
- DECIDING:   the decision is derived from the diagnostics
- TERMINAL:   ACCEPTED | INVALID_REGISTRATION | EMAIL_IN_USE

Rules (in order):
1. Username: required, [A-Za-z0-9_.-]+, starts with a letter, 3-22 chars
2. First name, last name, affiliation, rank, organization: required
3. Eligibility, exactly one branch:
   - certificate identity present: reject if already registered;
     the invite token is never checked
   - otherwise: the invite token must be inside the validity window
4. Email: well formed and on an approved domain list
5. Uniqueness: no existing account with this email in the realm

EMAIL_IN_USE outranks INVALID_REGISTRATION as the reported event code,
but never suppresses diagnostics from the other rules. A rejected
submission is final; the registrant submits a new one.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any

from . import domains
from .invites import InviteVerifier
from .models import (
    FIELD_AFFILIATION,
    FIELD_EMAIL,
    FIELD_FIRST_NAME,
    FIELD_LAST_NAME,
    FIELD_ORGANIZATION,
    FIELD_RANK,
    FIELD_USERNAME,
    FORM_LEVEL,
    Decision,
    Diagnostic,
    DomainTierConfig,
    InviteSecretConfig,
    RegistrationSubmission,
    TierPlan,
    ValidationResult,
)
from .ports import Account, IdentityResolver, RegistrationEvents, UserDirectory
from .tiers import TierAssignment

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 22

MSG_MISSING_USERNAME = "Please specify username."
MSG_USERNAME_CHARSET = (
    "Username can only contain alphanumeric, underscore, hyphen and period characters."
)
MSG_USERNAME_LEADING = "Username must begin with a letter."
MSG_USERNAME_LENGTH = (
    f"Username must be between {USERNAME_MIN_LENGTH} to {USERNAME_MAX_LENGTH} characters."
)
MSG_IDENTITY_REGISTERED = "Sorry, this certificate seems to already be registered."
MSG_INVALID_INVITE = "Invalid or expired registration code."
MSG_EMAIL_DOMAIN = "Please check your email address, it seems to not be an approved domain."
MSG_EMAIL_EXISTS = "Email already exists."
MSG_USERNAME_EXISTS = "Username already exists."

REQUIRED_FIELDS = (
    (FIELD_FIRST_NAME, "first_name", "Please specify first name."),
    (FIELD_LAST_NAME, "last_name", "Please specify last name."),
    (FIELD_AFFILIATION, "affiliation", "Please specify your organization affiliation."),
    (FIELD_RANK, "rank", "Please specify your rank or choose n/a."),
    (FIELD_ORGANIZATION, "organization", "Please specify your organization."),
)


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def check_username(username: str | None) -> list[Diagnostic]:
    """Each violated username rule yields its own diagnostic."""
    if is_blank(username):
        return [Diagnostic(FIELD_USERNAME, MSG_MISSING_USERNAME)]

    found = []
    if not USERNAME_PATTERN.fullmatch(username):
        found.append(Diagnostic(FIELD_USERNAME, MSG_USERNAME_CHARSET))
    if not username[0].isalpha():
        found.append(Diagnostic(FIELD_USERNAME, MSG_USERNAME_LEADING))
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        found.append(Diagnostic(FIELD_USERNAME, MSG_USERNAME_LENGTH))
    return found


@dataclass
class RegistrationValidator:
    """
    Runs the validation pipeline for one realm's registration flow.

    Collaborators are injected; the validator holds no per-submission state.
    """

    realm: str
    invite_config: InviteSecretConfig | None
    domain_config: DomainTierConfig
    invite_verifier: InviteVerifier
    identity_resolver: IdentityResolver
    directory: UserDirectory
    events: RegistrationEvents

    def validate(self, submission: RegistrationSubmission, context: Any) -> ValidationResult:
        """
        Validate a submission and signal exactly one outcome.

        Args:
            submission: Submitted fields, with the certificate identity if any
            context: Opaque request context forwarded to the identity resolver

        Returns:
            ValidationResult with the decision and all diagnostics in rule order
        """
        diagnostics: list[Diagnostic] = []
        decision = Decision.INVALID_REGISTRATION

        diagnostics.extend(check_username(submission.username))

        for field_name, attr, message in REQUIRED_FIELDS:
            if is_blank(getattr(submission, attr)):
                diagnostics.append(Diagnostic(field_name, message))

        if submission.identity_username is not None:
            if self.identity_resolver.is_identity_already_registered(context):
                logger.info(
                    "Certificate identity %s already registered in realm %s",
                    submission.identity_username,
                    self.realm,
                )
                diagnostics.append(Diagnostic(FORM_LEVEL, MSG_IDENTITY_REGISTERED))
        elif not self.invite_verifier.is_valid(self.invite_config, submission.invite):
            logger.info("Invalid or expired invite presented in realm %s", self.realm)
            diagnostics.append(Diagnostic(FORM_LEVEL, MSG_INVALID_INVITE))

        if not domains.is_domain_eligible(self.domain_config, submission.email):
            logger.info("Email not on an approved domain: %s", submission.email)
            diagnostics.append(Diagnostic(FIELD_EMAIL, MSG_EMAIL_DOMAIN))

        if not is_blank(submission.email) and (
            self.directory.find_by_email(submission.email, self.realm) is not None
        ):
            decision = Decision.EMAIL_IN_USE
            diagnostics.append(Diagnostic(FIELD_EMAIL, MSG_EMAIL_EXISTS))

        fields = submission.as_fields()
        if not diagnostics:
            self.events.report_success(fields)
            return ValidationResult(Decision.ACCEPTED)

        self.events.report_error(decision)
        self.events.report_validation_failure(fields, diagnostics)
        return ValidationResult(decision, tuple(diagnostics))


@dataclass
class RegistrationService:
    """
    Domain service for self-service registration.

    Orchestrates identity resolution, validation and, once the account
    exists, tier assignment.
    """

    validator: RegistrationValidator
    tier_assignment: TierAssignment

    def submit(self, form: dict[str, str], context: Any) -> ValidationResult:
        """
        Validate a decoded registration form.

        Args:
            form: Form parameters keyed by field name
            context: Request context for the identity resolver

        Returns:
            ValidationResult; accepted results may proceed to account creation
        """
        identity = self.validator.identity_resolver.resolve_identity_username(context)
        submission = RegistrationSubmission.from_form(form, identity_username=identity)
        return self.validator.validate(submission, context)

    def complete(
        self, account: Account, context: Any, directory: UserDirectory | None = None
    ) -> TierPlan:
        """
        Assign tiers, attributes and required actions to an accepted account.

        Args:
            account: The newly created account
            context: Request context for the identity resolver
            directory: Directory to mutate through, usually the unit of work
                that created the account; defaults to the validator's

        Returns:
            The TierPlan that was applied
        """
        identity = self.validator.identity_resolver.resolve_identity_username(context)
        plan = self.tier_assignment.plan(account.email, identity)
        if directory is None:
            directory = self.validator.directory
        self.tier_assignment.apply(account, plan, directory)
        return plan
