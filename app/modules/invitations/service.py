from supabase import Client
from app.config.settings import settings
from app.modules.auth.schemas import Caller
from app.modules.invitations.schemas import (
    InvitationCreate, InvitationResponse, InvitationCreateResponse,
    InvitationDetails, AcceptInvitePage, InvitationActionResult
)
from app.modules.invitations.state_machine import (
    Decision, InvitationOutcome, InvitationStatus, MESSAGES, can_transition,
    decide_acceptance, decide_decline, decide_revoke,
    emails_match, is_expired, outcome_for_status, status_of, utcnow
)
from app.modules.invitations.email import InvitationEmailSender
from app.core.authorization import AuthorizationService, INVITABLE_ROLES
from app.core.errors import (
    AppError, Conflict, DependencyFailure, NotFound, Unauthorized, ValidationError,
    UNIQUE_VIOLATION, error_code_of
)
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple
from datetime import datetime, timedelta
import logging
import re
import secrets

logger = logging.getLogger(__name__)

# secrets.token_urlsafe output; anything else is rejected without a query
TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]{16,128}$")

LOOKUP_FAILED = "An error occurred while validating the invitation."

Row = Dict[str, Any]

# refused_reason from transition_team_invitation -> outcome
REFUSAL_OUTCOMES = {
    "expired": InvitationOutcome.EXPIRED,
    "wrong_user": InvitationOutcome.WRONG_USER,
}


class TransitionResult(NamedTuple):
    applied: bool
    current_status: Optional[str]
    membership_created: bool
    refused_reason: Optional[str] = None


def generate_token() -> str:
    return secrets.token_urlsafe(32)


def is_well_formed_token(token: Optional[str]) -> bool:
    return bool(token) and TOKEN_PATTERN.match(token) is not None


class InvitationService:
    def __init__(
        self,
        supabase: Client,
        authz: Optional[AuthorizationService] = None,
        email_sender: Optional[InvitationEmailSender] = None,
    ):
        self.supabase = supabase
        self.authz = authz or AuthorizationService(supabase)
        self.email_sender = email_sender or InvitationEmailSender()

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    def _fetch_invitation(self, **filters: Any) -> Optional[Row]:
        try:
            query = self.supabase.table("team_invitations").select("*")
            for column, value in filters.items():
                query = query.eq(column, value)
            result = query.limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching invitation {filters}: {e}")
            raise DependencyFailure("Failed to load invitation")
        rows = result.data or []
        return rows[0] if rows else None

    def _apply_transition(self, invitation: Row, target: InvitationStatus, acting_user_id: Optional[str]) -> TransitionResult:
        """
        Compare-and-set pending -> target in one transaction.

        When applied is False nothing was written and current_status is what
        the row holds now. refused_reason is set when the store turned down an
        acceptance of a row that is still pending.
        """
        try:
            result = self.supabase.rpc("transition_team_invitation", {
                "p_invitation_id": invitation["id"],
                "p_from_status": InvitationStatus.PENDING.value,
                "p_to_status": target.value,
                "p_acting_user_id": acting_user_id,
            }).execute()
        except Exception as e:
            logger.error(f"Error moving invitation {invitation['id']} to {target.value}: {e}")
            raise DependencyFailure("Failed to update invitation")
        data = result.data
        row = (data[0] if data else None) if isinstance(data, list) else data
        if not row:
            raise DependencyFailure("Invitation update returned no result")
        return TransitionResult(
            applied=bool(row.get("applied")),
            current_status=row.get("current_status"),
            membership_created=bool(row.get("membership_created")),
            refused_reason=row.get("refused_reason"),
        )

    def _settle(
        self,
        invitation: Optional[Row],
        decide: Callable[[Optional[Row]], Decision],
        acting_user_id: Optional[str] = None,
    ) -> Tuple[Decision, Optional[Row], bool]:
        """
        Decide on the current row and commit the transition the decision asks for.

        A lost compare-and-set means someone else moved the invitation first;
        the row is read again and the decision is remade on what it now holds.
        """
        for _ in range(3):
            decision = decide(invitation)
            if decision.target_status is None:
                return decision, invitation, False
            current = status_of(invitation)
            if not can_transition(current, decision.target_status):
                logger.warning(
                    f"Refusing {current.value} -> {decision.target_status.value} for invitation {invitation['id']}"
                )
                return Decision(outcome_for_status(current), success=False), invitation, False
            transition = self._apply_transition(invitation, decision.target_status, acting_user_id)
            if transition.applied:
                invitation = dict(invitation, status=decision.target_status.value)
                return decision, invitation, transition.membership_created
            if transition.current_status == InvitationStatus.PENDING.value:
                # Still pending but the store refused the acceptance
                outcome = REFUSAL_OUTCOMES.get(transition.refused_reason, InvitationOutcome.EXPIRED)
                return Decision(outcome, success=False), invitation, False
            logger.info(f"Invitation {invitation['id']} changed concurrently to {transition.current_status}")
            invitation = self._fetch_invitation(id=invitation["id"])
        raise DependencyFailure("Invitation kept changing while being processed")

    @staticmethod
    def _result(decision: Decision, invitation: Optional[Row], outcome: Optional[InvitationOutcome] = None,
                redirect_to: Optional[str] = None) -> InvitationActionResult:
        outcome = outcome or decision.outcome
        return InvitationActionResult(
            success=decision.success,
            message=MESSAGES[outcome],
            outcome=outcome,
            team_id=invitation.get("team_id") if invitation else None,
            status=invitation.get("status") if invitation else None,
            redirect_to=redirect_to,
        )

    # ------------------------------------------------------------------
    # Creation and listing (team owner)
    # ------------------------------------------------------------------

    def create_invitation(self, team_id: str, invitation_data: InvitationCreate, caller: Caller) -> InvitationCreateResponse:
        """Invite an email address to a team (owner only) and send the invitation email."""
        if invitation_data.role not in INVITABLE_ROLES:
            raise ValidationError("Ownership cannot be granted through an invitation")
        team = self.authz.require_team_owner(caller.id, team_id)
        email = str(invitation_data.email).strip().lower()
        now = utcnow()

        try:
            pending = self.supabase.table("team_invitations")\
                .select("*")\
                .eq("team_id", team_id)\
                .eq("invited_user_email", email)\
                .eq("status", InvitationStatus.PENDING.value)\
                .execute()
        except Exception as e:
            logger.error(f"Error checking pending invitations for {email} on {team_id}: {e}")
            raise DependencyFailure("Failed to check existing invitations")
        for existing in pending.data or []:
            if not is_expired(existing, now):
                raise Conflict("An invitation is already pending for this email address")
            # Stale pending row: close it so the new invitation can take its place
            self._apply_transition(existing, InvitationStatus.EXPIRED, None)

        days = invitation_data.expires_in_days or settings.invitation_expiry_days
        token = generate_token()
        record = {
            "team_id": team_id,
            "invited_by_user_id": caller.id,
            "invited_user_email": email,
            "role": invitation_data.role.value,
            "status": InvitationStatus.PENDING.value,
            "token": token,
            "created_at": now.isoformat(),
            "expires_at": (now + timedelta(days=days)).isoformat(),
        }
        try:
            result = self.supabase.table("team_invitations").insert(record).execute()
        except Exception as e:
            if error_code_of(e) == UNIQUE_VIOLATION:
                raise Conflict("An invitation is already pending for this email address")
            logger.error(f"Error creating invitation for {email} on {team_id}: {e}")
            raise DependencyFailure("Failed to create invitation")
        if not result.data:
            raise DependencyFailure("Failed to create invitation")
        invitation = InvitationResponse(**result.data[0])
        logger.info(f"Invitation {invitation.id} to team {team_id} created by {caller.id}")

        invite_link = settings.invite_link(token)
        sent = self.email_sender.send_invitation_email(
            to=email,
            invite_link=invite_link,
            team_name=team.get("name") or "your",
            inviter_name=caller.display_name,
        )
        if not sent.success:
            logger.warning(f"Invitation {invitation.id} created but email failed: {sent.error}")
        return InvitationCreateResponse(
            invitation=invitation,
            invite_link=invite_link,
            email_sent=sent.success,
            email_error=sent.error,
        )

    def list_team_invitations(self, team_id: str, caller: Caller,
                              status: Optional[InvitationStatus] = None) -> List[InvitationResponse]:
        """Invitations of a team, newest first (owner only). Lapsed pending rows are reported as expired."""
        self.authz.require_team_owner(caller.id, team_id)
        try:
            query = self.supabase.table("team_invitations")\
                .select("*")\
                .eq("team_id", team_id)
            if status is not None and status != InvitationStatus.EXPIRED:
                query = query.eq("status", status.value)
            result = query.order("created_at", desc=True).execute()
        except Exception as e:
            logger.error(f"Error listing invitations for team {team_id}: {e}")
            raise DependencyFailure("Failed to load invitations")

        now = utcnow()
        invitations = []
        for row in result.data or []:
            if status_of(row) == InvitationStatus.PENDING and is_expired(row, now):
                row = dict(row, status=InvitationStatus.EXPIRED.value)
            if status is not None and status_of(row) != status:
                continue
            invitations.append(InvitationResponse(**row))
        return invitations

    def revoke_invitation(self, team_id: str, invitation_id: str, caller: Caller) -> InvitationActionResult:
        """Withdraw a pending invitation (owner only)."""
        self.authz.require_team_owner(caller.id, team_id)
        invitation = self._fetch_invitation(id=invitation_id)
        if not invitation or invitation.get("team_id") != team_id:
            raise NotFound("Invitation not found")
        decision, invitation, _ = self._settle(invitation, decide_revoke)
        if decision.outcome == InvitationOutcome.REVOKED:
            logger.info(f"Invitation {invitation_id} revoked by {caller.id}")
        return self._result(decision, invitation)

    # ------------------------------------------------------------------
    # Token holder operations
    # ------------------------------------------------------------------

    def _fetch_by_token(self, token: Optional[str]) -> Optional[Row]:
        if not is_well_formed_token(token):
            return None
        return self._fetch_invitation(token=token)

    def lookup_invitation_by_token(self, token: Optional[str]) -> Optional[InvitationDetails]:
        """Invitation and team name for a token; None for malformed or unknown tokens."""
        invitation = self._fetch_by_token(token)
        if not invitation:
            return None
        team = self.authz.get_team(invitation["team_id"])
        return InvitationDetails(
            id=invitation["id"],
            team_id=invitation["team_id"],
            team_name=team.get("name") if team else None,
            invited_user_email=invitation["invited_user_email"],
            role=invitation["role"],
            status=invitation["status"],
            expires_at=invitation["expires_at"],
        )

    def build_accept_invite_page(self, token: Optional[str], caller: Optional[Caller] = None,
                                 now: Optional[datetime] = None) -> AcceptInvitePage:
        """Data for the public invitation landing page. Never writes."""
        page = AcceptInvitePage(is_valid_token=False, message=MESSAGES[InvitationOutcome.NOT_FOUND], token=token)
        if not token:
            return page
        try:
            details = self.lookup_invitation_by_token(token)
        except DependencyFailure:
            page.message = LOOKUP_FAILED
            return page
        if details is None or details.team_name is None:
            return page

        page.status = details.status
        if is_expired({"status": details.status.value, "expires_at": details.expires_at}, now):
            page.message = MESSAGES[InvitationOutcome.EXPIRED]
            return page
        if details.status != InvitationStatus.PENDING:
            page.message = MESSAGES[outcome_for_status(details.status)]
            return page

        page.is_valid_token = True
        page.message = None
        page.team_name = details.team_name
        page.invited_email = details.invited_user_email
        page.role = details.role
        page.is_logged_in_user_match = caller is not None and emails_match(details.invited_user_email, caller.email)
        return page

    def accept_invitation(self, token: Optional[str], caller: Optional[Caller]) -> InvitationActionResult:
        """
        Join the team the invitation points at.

        Checks run in this order: unknown token, expiry (whatever the status),
        not pending, email mismatch. Only then is the membership written, in
        the same transaction as the status change.
        """
        if caller is None:
            raise Unauthorized("You must be logged in to accept.")
        invitation = self._fetch_by_token(token)
        decision, invitation, membership_created = self._settle(
            invitation,
            lambda row: decide_acceptance(row, caller.email),
            acting_user_id=caller.id,
        )
        if decision.outcome != InvitationOutcome.ACCEPTED:
            logger.info(f"Acceptance by {caller.id} refused: {decision.outcome.value}")
            return self._result(decision, invitation)

        team_id = invitation["team_id"]
        logger.info(f"User {caller.id} joined team {team_id} via invitation {invitation['id']}")
        outcome = InvitationOutcome.ACCEPTED if membership_created else InvitationOutcome.ALREADY_MEMBER
        return self._result(decision, invitation, outcome=outcome, redirect_to=f"/teams/{team_id}")

    def decline_invitation(self, token: Optional[str], caller_email: Optional[str] = None) -> InvitationActionResult:
        """Decline an invitation. Declining one that is already declined reports success."""
        invitation = self._fetch_by_token(token)
        decision, invitation, _ = self._settle(
            invitation,
            lambda row: decide_decline(row, caller_email),
        )
        if decision.outcome == InvitationOutcome.DECLINED:
            logger.info(f"Invitation {invitation['id']} declined")
        return self._result(decision, invitation)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def expire_stale_invitations(self, now: Optional[datetime] = None) -> int:
        """Move pending invitations past their expiry to expired; returns how many moved."""
        now = now or utcnow()
        try:
            result = self.supabase.table("team_invitations")\
                .select("id, status, expires_at")\
                .eq("status", InvitationStatus.PENDING.value)\
                .lte("expires_at", now.isoformat())\
                .execute()
        except Exception as e:
            logger.error(f"Error loading stale invitations: {e}")
            raise DependencyFailure("Failed to load stale invitations")

        expired = 0
        for row in result.data or []:
            try:
                transition = self._apply_transition(row, InvitationStatus.EXPIRED, None)
            except AppError as e:
                logger.warning(f"Could not expire invitation {row['id']}: {e.message}")
                continue
            if transition.applied:
                expired += 1
        if expired:
            logger.info(f"Expired {expired} stale invitations")
        return expired
