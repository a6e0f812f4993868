"""
Domain exceptions - Semantic error types for registration.

User-correctable outcomes (missing fields, bad invite, email in use) are
reported as diagnostics on a ValidationResult, not raised. These types
cover conditions the submitter cannot fix.
"""


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    pass


class ConfigurationError(RegistrationError):
    """Operator-facing fault: invalid invite configuration or digest algorithm."""

    pass


class EmailAlreadyInUse(RegistrationError):
    """Account creation lost a race against another registration for the same email."""

    pass


class UsernameAlreadyInUse(RegistrationError):
    """Account creation found the username already taken in the realm."""

    pass
