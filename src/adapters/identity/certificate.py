"""
Certificate header resolver - Implements IdentityResolver protocol.

Client certificates are verified by the TLS-terminating proxy in front
of the service. The proxy forwards the verification result and the
subject DN in request headers; this adapter trusts those headers and
takes the subject's common name as the certificate identity.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Protocol

from src.domain.tiers import CERTIFICATE_ATTRIBUTE

logger = logging.getLogger(__name__)

VERIFIED = "SUCCESS"

# Matches CN in both RFC 4514 ("CN=x,O=y") and OpenSSL ("/O=y/CN=x") forms
_CN_PATTERN = re.compile(r"(?:^|[,/+])\s*CN=((?:\\.|[^,/+])+)", re.IGNORECASE)


class AttributeLookup(Protocol):
    def find_by_attribute(self, name: str, value: str, realm: str) -> Any: ...


def common_name(subject_dn: str) -> str | None:
    """Extract the common name from a subject DN, or None if it has none."""
    match = _CN_PATTERN.search(subject_dn)
    if match is None:
        return None
    value = re.sub(r"\\(.)", r"\1", match.group(1)).strip()
    return value or None


class CertificateHeaderResolver:
    """
    Implements IdentityResolver protocol from proxy-forwarded headers.

    Uses structural subtyping - no explicit inheritance from Protocol.
    The request context must expose a case-insensitive `headers` mapping.
    """

    def __init__(
        self,
        directory: AttributeLookup,
        realm: str,
        verify_header: str = "X-SSL-Client-Verify",
        subject_header: str = "X-SSL-Client-S-DN",
    ) -> None:
        self._directory = directory
        self._realm = realm
        self._verify_header = verify_header
        self._subject_header = subject_header

    def resolve_identity_username(self, context: Any) -> str | None:
        headers: Mapping[str, str] = context.headers
        if headers.get(self._verify_header, "").upper() != VERIFIED:
            return None

        subject = headers.get(self._subject_header)
        if not subject:
            logger.warning("Verified client certificate without a subject header")
            return None
        return common_name(subject)

    def is_identity_already_registered(self, context: Any) -> bool:
        identity = self.resolve_identity_username(context)
        if identity is None:
            return False
        existing = self._directory.find_by_attribute(CERTIFICATE_ATTRIBUTE, identity, self._realm)
        return existing is not None
