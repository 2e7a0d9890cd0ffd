"""
Invitation state machine.

    pending --accept--> accepted
    pending --decline-> declined
    pending --revoke--> revoked
    pending --expire--> expired

Every non-pending status is terminal. The functions here only DECIDE what
should happen to an invitation given its current row; they never write.
Applying a decision is a compare-and-set on the status done by the store
(see InvitationService._apply_transition), so two racing callers can both
decide "accept" but only one of them commits.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import TypeAdapter


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    REVOKED = "revoked"
    EXPIRED = "expired"


TERMINAL_STATUSES = frozenset({
    InvitationStatus.ACCEPTED,
    InvitationStatus.DECLINED,
    InvitationStatus.REVOKED,
    InvitationStatus.EXPIRED,
})

ALLOWED_TRANSITIONS = {
    InvitationStatus.PENDING: TERMINAL_STATUSES,
    InvitationStatus.ACCEPTED: frozenset(),
    InvitationStatus.DECLINED: frozenset(),
    InvitationStatus.REVOKED: frozenset(),
    InvitationStatus.EXPIRED: frozenset(),
}


def can_transition(current: InvitationStatus, target: InvitationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


class InvitationOutcome(str, Enum):
    ACCEPTED = "accepted"
    ALREADY_MEMBER = "already_member"
    DECLINED = "declined"
    REVOKED = "revoked"
    ALREADY_ACCEPTED = "already_accepted"
    ALREADY_DECLINED = "already_declined"
    ALREADY_REVOKED = "already_revoked"
    EXPIRED = "expired"
    WRONG_USER = "wrong_user"
    NOT_FOUND = "not_found"


MESSAGES = {
    InvitationOutcome.ACCEPTED: "Invitation accepted. Welcome to the team!",
    InvitationOutcome.ALREADY_MEMBER: "You are already a member of this team.",
    InvitationOutcome.DECLINED: "Invitation declined.",
    InvitationOutcome.REVOKED: "Invitation revoked.",
    InvitationOutcome.ALREADY_ACCEPTED: "This invitation has already been accepted.",
    InvitationOutcome.ALREADY_DECLINED: "This invitation has already been declined.",
    InvitationOutcome.ALREADY_REVOKED: "This invitation has been revoked.",
    InvitationOutcome.EXPIRED: "This invitation has expired.",
    InvitationOutcome.WRONG_USER: "This invitation was sent to a different email address.",
    InvitationOutcome.NOT_FOUND: "Invalid or expired invitation link.",
}

_STATUS_OUTCOMES = {
    InvitationStatus.ACCEPTED: InvitationOutcome.ALREADY_ACCEPTED,
    InvitationStatus.DECLINED: InvitationOutcome.ALREADY_DECLINED,
    InvitationStatus.REVOKED: InvitationOutcome.ALREADY_REVOKED,
    InvitationStatus.EXPIRED: InvitationOutcome.EXPIRED,
}


@dataclass(frozen=True)
class Decision:
    outcome: InvitationOutcome
    success: bool
    # Set when the decision requires committing pending -> target_status
    target_status: Optional[InvitationStatus] = None

    @property
    def message(self) -> str:
        return MESSAGES[self.outcome]


_datetime_adapter = TypeAdapter(datetime)


def parse_timestamp(value: Any) -> datetime:
    """Timestamps come back from PostgREST as ISO strings; naive values are UTC."""
    parsed = value if isinstance(value, datetime) else _datetime_adapter.validate_python(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def status_of(invitation: Mapping[str, Any]) -> InvitationStatus:
    return InvitationStatus(invitation["status"])


def is_expired(invitation: Mapping[str, Any], now: Optional[datetime] = None) -> bool:
    if status_of(invitation) == InvitationStatus.EXPIRED:
        return True
    return parse_timestamp(invitation["expires_at"]) <= (now or utcnow())


def emails_match(invited_email: Optional[str], candidate: Optional[str]) -> bool:
    """Case-insensitive exact match."""
    if not invited_email or not candidate:
        return False
    return invited_email.strip().casefold() == candidate.strip().casefold()


def outcome_for_status(status: InvitationStatus) -> InvitationOutcome:
    """Business outcome reported for an invitation that is no longer pending."""
    return _STATUS_OUTCOMES[status]


def decide_acceptance(
    invitation: Optional[Mapping[str, Any]],
    user_email: Optional[str],
    now: Optional[datetime] = None,
) -> Decision:
    if not invitation:
        return Decision(InvitationOutcome.NOT_FOUND, success=False)
    status = status_of(invitation)
    # Expiry wins over whatever the status column says. Only the invitee's own
    # attempt marks the row expired; anyone else leaves it untouched.
    if is_expired(invitation, now):
        is_invitee = emails_match(invitation.get("invited_user_email"), user_email)
        target = InvitationStatus.EXPIRED if status == InvitationStatus.PENDING and is_invitee else None
        return Decision(InvitationOutcome.EXPIRED, success=False, target_status=target)
    if status != InvitationStatus.PENDING:
        return Decision(outcome_for_status(status), success=False)
    if not emails_match(invitation.get("invited_user_email"), user_email):
        return Decision(InvitationOutcome.WRONG_USER, success=False)
    return Decision(InvitationOutcome.ACCEPTED, success=True, target_status=InvitationStatus.ACCEPTED)


def decide_decline(
    invitation: Optional[Mapping[str, Any]],
    caller_email: Optional[str],
    now: Optional[datetime] = None,
) -> Decision:
    """caller_email is None for an anonymous caller holding the link."""
    if not invitation:
        return Decision(InvitationOutcome.NOT_FOUND, success=False)
    if caller_email is not None and not emails_match(invitation.get("invited_user_email"), caller_email):
        return Decision(InvitationOutcome.WRONG_USER, success=False)
    status = status_of(invitation)
    if status == InvitationStatus.DECLINED:
        return Decision(InvitationOutcome.ALREADY_DECLINED, success=True)
    if status == InvitationStatus.PENDING and is_expired(invitation, now):
        return Decision(InvitationOutcome.EXPIRED, success=False, target_status=InvitationStatus.EXPIRED)
    if status != InvitationStatus.PENDING:
        return Decision(outcome_for_status(status), success=False)
    return Decision(InvitationOutcome.DECLINED, success=True, target_status=InvitationStatus.DECLINED)


def decide_revoke(invitation: Optional[Mapping[str, Any]]) -> Decision:
    if not invitation:
        return Decision(InvitationOutcome.NOT_FOUND, success=False)
    status = status_of(invitation)
    if status == InvitationStatus.REVOKED:
        return Decision(InvitationOutcome.ALREADY_REVOKED, success=True)
    if status != InvitationStatus.PENDING:
        return Decision(outcome_for_status(status), success=False)
    return Decision(InvitationOutcome.REVOKED, success=True, target_status=InvitationStatus.REVOKED)
