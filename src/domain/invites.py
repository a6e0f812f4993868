"""
Invite tokens - Rotating day-keyed digests of a shared secret.

An invite token is base64(SHA-256("<year><day-of-year>:<secret>")) for the
calendar day (UTC) it was issued. Tokens are bearer credentials: anyone
holding one may register while it is inside the validity window.

Validity Window
===============

A token minted on day D is accepted on days D .. D + valid_days. The
verifier checks offsets 0 through valid_days inclusive, so the extra day
absorbs clock and timezone skew between issuer and verifier.

Caching
=======

Digests are memoized per (day key, secret fingerprint) for the lifetime
of the DigestCache. Keying on the secret fingerprint means a rotated
secret never hits a digest computed for the previous one.
"""

import base64
import binascii
import hashlib
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from urllib.parse import quote_plus

from .exceptions import ConfigurationError
from .models import InviteLink, InviteSecretConfig

logger = logging.getLogger(__name__)

REGISTRATION_PATH = "/auth/realms/{realm}/protocol/openid-connect/registrations"


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def day_key(moment: datetime) -> str:
    """Year followed by the unpadded day of the year, e.g. "2026291"."""
    return f"{moment.year}{moment.timetuple().tm_yday}"


class DigestCache:
    """
    Thread-safe memo of day-keyed invite digests.

    Construct one per process and share it between requests; tests
    construct their own with a fixed clock.
    """

    def __init__(
        self, clock: Callable[[], datetime] = utc_now, algorithm: str = "sha256"
    ) -> None:
        try:
            hashlib.new(algorithm)
        except ValueError as e:
            raise ConfigurationError(f"Unsupported digest algorithm: {algorithm}") from e

        self._clock = clock
        self._algorithm = algorithm
        self._lock = threading.Lock()
        self._digests: dict[tuple[str, str], str] = {}

    def digest_for(self, day_offset: int, secret: str) -> str:
        """
        Return the invite digest for the day `day_offset` days before today.

        Args:
            day_offset: 0 for today, 1 for yesterday, and so on
            secret: Shared invite secret

        Returns:
            Base64-encoded digest for that calendar day
        """
        key = day_key(self._clock() - timedelta(days=day_offset))
        cache_key = (key, hashlib.sha256(secret.encode("utf-8")).hexdigest())

        with self._lock:
            cached = self._digests.get(cache_key)
        if cached is not None:
            return cached

        # Computed outside the lock; a concurrent duplicate yields the same value
        raw = hashlib.new(self._algorithm, f"{key}:{secret}".encode("utf-8")).digest()
        computed = base64.b64encode(raw).decode("ascii")

        with self._lock:
            return self._digests.setdefault(cache_key, computed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._digests)


@dataclass
class InviteVerifier:
    """Accepts a presented invite token if it matches any day in the trailing window."""

    cache: DigestCache = field(default_factory=DigestCache)

    def is_valid(self, config: InviteSecretConfig | None, token: str | None) -> bool:
        if config is None or not token:
            return False

        try:
            base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError):
            logger.debug("Rejected invite token that is not valid base64")
            return False

        for day_offset in range(config.valid_days + 1):
            if token == self.cache.digest_for(day_offset, config.secret):
                return True
        return False


@dataclass
class InviteIssuer:
    """Builds today's realm-scoped registration link."""

    cache: DigestCache = field(default_factory=DigestCache)

    def issue(self, config: InviteSecretConfig | None, realm: str) -> InviteLink:
        """
        Issue today's invite link for a realm.

        Returns:
            InviteLink with issued=False when no invite secret is configured
        """
        if config is None:
            logger.info("Invite link requested for realm %s without an invite secret", realm)
            return InviteLink(issued=False)

        token = quote_plus(self.cache.digest_for(0, config.secret))
        link = (
            REGISTRATION_PATH.format(realm=quote_plus(realm))
            + f"?client_id=account&response_type=code&invite={token}"
        )
        return InviteLink(issued=True, valid_days=config.valid_days, link=link)
