"""
Domain layer - Pure business logic with zero framework imports.

This package contains the registration eligibility engine: rotating
invite tokens, email domain tier classification, the validation
pipeline and tier assignment. It defines its own port interfaces for
infrastructure abstraction, ensuring true hexagonal architecture decoupling.
"""

from .exceptions import (
    ConfigurationError,
    EmailAlreadyInUse,
    RegistrationError,
    UsernameAlreadyInUse,
)
from .invites import DigestCache, InviteIssuer, InviteVerifier
from .models import (
    Decision,
    Diagnostic,
    DomainTierConfig,
    InviteLink,
    InviteSecretConfig,
    RegistrationSubmission,
    RequiredAction,
    Tier,
    TierPlan,
    ValidationResult,
)
from .ports import IdentityResolver, RegistrationEvents, UserDirectory
from .registration import RegistrationService, RegistrationValidator
from .tiers import TierAssignment

__all__ = [
    "ConfigurationError",
    "Decision",
    "Diagnostic",
    "DigestCache",
    "DomainTierConfig",
    "EmailAlreadyInUse",
    "IdentityResolver",
    "InviteIssuer",
    "InviteLink",
    "InviteSecretConfig",
    "InviteVerifier",
    "RegistrationError",
    "RegistrationEvents",
    "RegistrationService",
    "RegistrationSubmission",
    "RegistrationValidator",
    "RequiredAction",
    "Tier",
    "TierAssignment",
    "TierPlan",
    "UsernameAlreadyInUse",
    "UserDirectory",
    "ValidationResult",
]
