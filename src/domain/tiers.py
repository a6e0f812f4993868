"""
Tier assignment for accepted registrations.

Runs only after a submission is accepted and the account exists.
Planning is pure; applying delegates every mutation to the UserDirectory.

    Tier2   every accepted account
    Tier4   tier-4 email domain, or certificate-authenticated
    Tier5   certificate-authenticated only
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from .domains import classify
from .invites import utc_now
from .models import DomainTierConfig, RequiredAction, Tier, TierPlan
from .ports import Account, UserDirectory

logger = logging.getLogger(__name__)

CERTIFICATE_ATTRIBUTE = "usercertificate"
MATTERMOST_ID_ATTRIBUTE = "mattermostid"


def mattermost_id(email: str, moment: datetime) -> str:
    """
    Build the chat-platform identifier stored on every new account.

    Two-digit year, unpadded day-of-year, hour, minute, second and
    millisecond, followed by the sum of the email's ASCII byte values.
    """
    stamp = (
        f"{moment:%y}{moment.timetuple().tm_yday}"
        f"{moment.hour}{moment.minute}{moment.second}{moment.microsecond // 1000}"
    )
    return stamp + str(sum(email.encode("ascii", errors="replace")))


@dataclass
class TierAssignment:
    """Computes and applies group membership, attributes and required actions."""

    domains: DomainTierConfig
    clock: Callable[[], datetime] = utc_now

    def plan(self, email: str, identity_username: str | None) -> TierPlan:
        tiers = {Tier.TIER2}
        if classify(self.domains, email).tier4:
            tiers.add(Tier.TIER4)

        attributes = {MATTERMOST_ID_ATTRIBUTE: mattermost_id(email, self.clock())}
        actions = [RequiredAction.VERIFY_EMAIL, RequiredAction.TERMS_AND_CONDITIONS]

        if identity_username is not None:
            # Certificate identity stands in for both the elevated domain and the second factor
            tiers.update((Tier.TIER4, Tier.TIER5))
            attributes[CERTIFICATE_ATTRIBUTE] = identity_username
        else:
            actions.append(RequiredAction.CONFIGURE_TOTP)

        return TierPlan(
            tiers=frozenset(tiers),
            attributes=attributes,
            required_actions=tuple(actions),
        )

    def apply(self, account: Account, plan: TierPlan, directory: UserDirectory) -> None:
        for tier in sorted(plan.tiers, key=lambda t: t.value):
            directory.join_group(account, tier)
        for key, value in plan.attributes.items():
            directory.set_attribute(account, key, value)
        for action in plan.required_actions:
            directory.add_required_action(account, action)

        logger.info(
            "Assigned tiers %s to account %s",
            ",".join(sorted(t.value for t in plan.tiers)),
            account.username,
        )
