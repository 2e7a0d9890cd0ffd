from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from app.core.authorization import TeamRole
from app.modules.invitations.state_machine import InvitationStatus, InvitationOutcome


class InvitationCreate(BaseModel):
    email: EmailStr
    role: TeamRole = TeamRole.MEMBER
    expires_in_days: Optional[int] = Field(None, ge=1, le=30)


class InvitationResponse(BaseModel):
    id: str
    team_id: str
    invited_by_user_id: str
    invited_user_email: str
    role: TeamRole
    status: InvitationStatus
    created_at: datetime
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    accepted_by_user_id: Optional[str] = None


class InvitationCreateResponse(BaseModel):
    invitation: InvitationResponse
    invite_link: str
    email_sent: bool
    email_error: Optional[str] = None


class InvitationDetails(BaseModel):
    """An invitation as resolved from its token, with the team name joined in."""
    id: str
    team_id: str
    team_name: Optional[str] = None
    invited_user_email: str
    role: TeamRole
    status: InvitationStatus
    expires_at: datetime


class AcceptInvitePage(BaseModel):
    is_valid_token: bool
    message: Optional[str] = None
    team_name: Optional[str] = None
    invited_email: Optional[str] = None
    role: Optional[TeamRole] = None
    status: Optional[InvitationStatus] = None
    is_logged_in_user_match: bool = False
    token: Optional[str] = None


class InvitationActionResult(BaseModel):
    success: bool
    message: str
    outcome: InvitationOutcome
    team_id: Optional[str] = None
    status: Optional[InvitationStatus] = None
    redirect_to: Optional[str] = None


class TokenRequest(BaseModel):
    token: str
