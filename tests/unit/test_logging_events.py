"""
Unit tests for LoggingRegistrationEvents adapter.

Tests verify the event sink implements RegistrationEvents protocol
and never logs the invite token.
"""

import logging

import pytest

from src.adapters.events.logging_sink import LoggingRegistrationEvents
from src.domain.models import Decision, Diagnostic

FIELDS = {"username": "tester", "email": "test@army.mil", "invite": "c2VjcmV0LXRva2Vu"}


class TestLoggingRegistrationEvents:
    """Tests for registration outcome logging."""

    def test_implements_protocol(self) -> None:
        from src.domain.ports import RegistrationEvents

        def accepts_events(e: RegistrationEvents) -> None:
            pass

        accepts_events(LoggingRegistrationEvents("baby-yoda"))
        assert LoggingRegistrationEvents.__bases__ == (object,)

    def test_error_logged_at_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            LoggingRegistrationEvents("baby-yoda").report_error(Decision.EMAIL_IN_USE)

        assert caplog.records[0].levelno == logging.WARNING
        assert "error=email_in_use" in caplog.text
        assert "realm=baby-yoda" in caplog.text

    def test_validation_failure_summarizes_fields(self, caplog: pytest.LogCaptureFixture) -> None:
        diagnostics = [Diagnostic("email", "bad"), Diagnostic("", "invite"), Diagnostic("email", "x")]

        with caplog.at_level(logging.INFO):
            LoggingRegistrationEvents("baby-yoda").report_validation_failure(FIELDS, diagnostics)

        assert "[REGISTRATION]" in caplog.text
        assert "diagnostics=3" in caplog.text
        assert "fields=<form>,email" in caplog.text

    def test_success_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            LoggingRegistrationEvents("baby-yoda").report_success(FIELDS)

        assert "username=tester" in caplog.text
        assert "accepted" in caplog.text

    def test_invite_token_never_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        events = LoggingRegistrationEvents("baby-yoda")

        with caplog.at_level(logging.DEBUG):
            events.report_error(Decision.INVALID_REGISTRATION)
            events.report_validation_failure(FIELDS, [Diagnostic("", "bad invite")])
            events.report_success(FIELDS)

        assert FIELDS["invite"] not in caplog.text
