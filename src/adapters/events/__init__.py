"""Event adapters - Registration outcome signaling."""

from .logging_sink import LoggingRegistrationEvents

__all__ = ["LoggingRegistrationEvents"]
