"""
Logging registration events adapter - Implements RegistrationEvents protocol.

Records registration outcomes to the application log. The invite token
is never written; it is a bearer credential.
"""

import logging
from collections.abc import Mapping, Sequence

from src.domain.models import FIELD_EMAIL, FIELD_USERNAME, Decision, Diagnostic

logger = logging.getLogger(__name__)


class LoggingRegistrationEvents:
    """
    Implements RegistrationEvents protocol via logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, realm: str) -> None:
        self._realm = realm

    def report_error(self, event_code: Decision) -> None:
        logger.warning("[REGISTRATION] realm=%s error=%s", self._realm, event_code.value)

    def report_validation_failure(
        self, fields: Mapping[str, str | None], diagnostics: Sequence[Diagnostic]
    ) -> None:
        failed = ",".join(sorted({d.field_name or "<form>" for d in diagnostics}))
        logger.info(
            "[REGISTRATION] realm=%s username=%s email=%s diagnostics=%d fields=%s",
            self._realm,
            fields.get(FIELD_USERNAME),
            fields.get(FIELD_EMAIL),
            len(diagnostics),
            failed,
        )

    def report_success(self, fields: Mapping[str, str | None]) -> None:
        logger.info(
            "[REGISTRATION] realm=%s username=%s email=%s accepted",
            self._realm,
            fields.get(FIELD_USERNAME),
            fields.get(FIELD_EMAIL),
        )
