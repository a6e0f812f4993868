"""
Unit tests for invite digests, verification and link issuance.

Tests verify:
- Day-keyed digest derivation and caching
- Trailing validity window (valid_days + 1 calendar days)
- Fail-closed handling of absent and malformed tokens
- Invite link format
"""

import base64
import hashlib
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from unittest.mock import Mock
from urllib.parse import parse_qs, unquote_plus, urlparse

import pytest

from src.domain.exceptions import ConfigurationError
from src.domain.invites import DigestCache, InviteIssuer, InviteVerifier, day_key
from src.domain.models import InviteSecretConfig


class TestDayKey:
    """Tests for the calendar day key."""

    def test_year_and_unpadded_day_of_year(self) -> None:
        assert day_key(datetime(2026, 1, 5, tzinfo=timezone.utc)) == "20265"
        assert day_key(datetime(2026, 12, 31, tzinfo=timezone.utc)) == "2026365"

    def test_year_boundary_distinct(self) -> None:
        assert day_key(datetime(2025, 12, 31, tzinfo=timezone.utc)) != day_key(
            datetime(2026, 12, 31, tzinfo=timezone.utc)
        )


class TestDigestCache:
    """Tests for DigestCache."""

    def test_digest_is_base64_sha256_of_day_key_and_secret(self, clock) -> None:
        cache = DigestCache(clock=clock)
        expected_raw = hashlib.sha256(b"202673:topsecret").digest()

        assert cache.digest_for(0, "topsecret") == base64.b64encode(expected_raw).decode()

    def test_same_day_is_idempotent(self, clock) -> None:
        cache = DigestCache(clock=clock)
        first = cache.digest_for(0, "topsecret")
        clock.advance(hours=11)

        assert cache.digest_for(0, "topsecret") == first
        assert len(cache) == 1

    def test_different_days_differ(self, clock) -> None:
        cache = DigestCache(clock=clock)
        assert cache.digest_for(0, "topsecret") != cache.digest_for(1, "topsecret")

    def test_offset_matches_earlier_day(self, clock) -> None:
        cache = DigestCache(clock=clock)
        today = cache.digest_for(0, "topsecret")
        clock.advance(days=3)

        assert cache.digest_for(3, "topsecret") == today

    def test_rotated_secret_is_not_served_stale(self, clock) -> None:
        cache = DigestCache(clock=clock)
        old = cache.digest_for(0, "old-secret")
        new = cache.digest_for(0, "new-secret")

        assert old != new
        assert len(cache) == 2

    def test_unsupported_algorithm_is_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            DigestCache(algorithm="no-such-hash")

    def test_concurrent_callers_agree(self, clock) -> None:
        cache = DigestCache(clock=clock)

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: cache.digest_for(0, "topsecret"), range(32)))

        assert len(set(results)) == 1
        assert len(cache) == 1


class TestInviteVerifier:
    """Tests for InviteVerifier."""

    def test_todays_token_is_valid(self, clock, invite_config) -> None:
        cache = DigestCache(clock=clock)
        token = cache.digest_for(0, invite_config.secret)

        assert InviteVerifier(cache).is_valid(invite_config, token)

    def test_token_valid_for_configured_days_then_expires(self, clock, invite_config) -> None:
        cache = DigestCache(clock=clock)
        verifier = InviteVerifier(cache)
        token = cache.digest_for(0, invite_config.secret)

        for _ in range(invite_config.valid_days):
            clock.advance(days=1)
            assert verifier.is_valid(invite_config, token)

        clock.advance(days=1)
        assert not verifier.is_valid(invite_config, token)

    def test_absent_token_rejected(self, invite_config) -> None:
        cache = Mock(spec=DigestCache)
        verifier = InviteVerifier(cache)

        assert not verifier.is_valid(invite_config, None)
        assert not verifier.is_valid(invite_config, "")
        cache.digest_for.assert_not_called()

    def test_malformed_token_rejected_without_digest(self, invite_config) -> None:
        cache = Mock(spec=DigestCache)
        verifier = InviteVerifier(cache)

        assert not verifier.is_valid(invite_config, "not base64!")
        assert not verifier.is_valid(invite_config, "abc")
        cache.digest_for.assert_not_called()

    def test_decodable_but_wrong_token_is_no_match(self, clock, invite_config) -> None:
        cache = DigestCache(clock=clock)
        token = base64.b64encode(b"short").decode()

        assert not InviteVerifier(cache).is_valid(invite_config, token)
        assert len(cache) == invite_config.valid_days + 1

    def test_token_for_other_secret_rejected(self, clock, invite_config) -> None:
        cache = DigestCache(clock=clock)
        token = cache.digest_for(0, "someone-elses-secret")

        assert not InviteVerifier(cache).is_valid(invite_config, token)

    def test_no_config_rejects_everything(self, clock, invite_config) -> None:
        cache = DigestCache(clock=clock)
        token = cache.digest_for(0, invite_config.secret)

        assert not InviteVerifier(cache).is_valid(None, token)


class TestInviteSecretConfig:
    """Tests for invite configuration faults."""

    @pytest.mark.parametrize("days", [0, -1])
    def test_non_positive_days_rejected(self, days: int) -> None:
        with pytest.raises(ConfigurationError):
            InviteSecretConfig(secret="x", valid_days=days)

    def test_non_integer_days_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            InviteSecretConfig(secret="x", valid_days="5")  # type: ignore[arg-type]

    def test_empty_secret_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            InviteSecretConfig(secret="", valid_days=5)


class TestInviteIssuer:
    """Tests for invite link issuance."""

    def test_not_issued_without_secret(self, clock) -> None:
        link = InviteIssuer(DigestCache(clock=clock)).issue(None, "baby-yoda")

        assert link.issued is False
        assert link.valid_days == 0
        assert link.link == ""

    def test_link_format(self, clock, invite_config) -> None:
        link = InviteIssuer(DigestCache(clock=clock)).issue(invite_config, "baby-yoda")

        parsed = urlparse(link.link)
        assert link.issued is True
        assert link.valid_days == invite_config.valid_days
        assert parsed.path == "/auth/realms/baby-yoda/protocol/openid-connect/registrations"
        query = parse_qs(parsed.query)
        assert query["client_id"] == ["account"]
        assert query["response_type"] == ["code"]

    def test_issued_token_is_accepted_by_verifier(self, clock, invite_config) -> None:
        cache = DigestCache(clock=clock)
        link = InviteIssuer(cache).issue(invite_config, "baby-yoda")
        encoded = link.link.split("invite=", 1)[1]

        assert InviteVerifier(cache).is_valid(invite_config, unquote_plus(encoded))

    def test_issued_token_expires_after_window(self, clock, invite_config) -> None:
        link = InviteIssuer(DigestCache(clock=clock)).issue(invite_config, "baby-yoda")
        token = unquote_plus(link.link.split("invite=", 1)[1])

        # A fresh cache on the verifying side, as after a process restart
        verifier = InviteVerifier(DigestCache(clock=clock))
        clock.advance(days=invite_config.valid_days)
        assert verifier.is_valid(invite_config, token)
        clock.advance(days=1)
        assert not verifier.is_valid(invite_config, token)
