from fastapi import APIRouter, Depends, Query, Request
from app.config.settings import settings
from app.core.dependencies import get_current_caller, get_optional_caller
from app.core.rate_limit import limiter
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import Caller
from app.modules.invitations.schemas import (
    InvitationCreate, InvitationResponse, InvitationCreateResponse,
    AcceptInvitePage, InvitationActionResult, TokenRequest
)
from app.modules.invitations.service import InvitationService
from app.modules.invitations.state_machine import InvitationStatus
from supabase import Client
from typing import List, Optional

router = APIRouter(tags=["invitations"])


def get_invitation_service(supabase: Client = Depends(get_supabase)) -> InvitationService:
    return InvitationService(supabase)


@router.post("/teams/{team_id}/invitations", response_model=InvitationCreateResponse, status_code=201)
async def create_invitation(
    team_id: str,
    invitation_data: InvitationCreate,
    caller: Caller = Depends(get_current_caller),
    service: InvitationService = Depends(get_invitation_service)
):
    """Invite someone to the team by email (owner only)"""
    return service.create_invitation(team_id, invitation_data, caller)


@router.get("/teams/{team_id}/invitations", response_model=List[InvitationResponse])
async def list_invitations(
    team_id: str,
    status: Optional[InvitationStatus] = Query(None),
    caller: Caller = Depends(get_current_caller),
    service: InvitationService = Depends(get_invitation_service)
):
    """List the team's invitations (owner only)"""
    return service.list_team_invitations(team_id, caller, status)


@router.delete("/teams/{team_id}/invitations/{invitation_id}", response_model=InvitationActionResult)
async def revoke_invitation(
    team_id: str,
    invitation_id: str,
    caller: Caller = Depends(get_current_caller),
    service: InvitationService = Depends(get_invitation_service)
):
    """Revoke a pending invitation (owner only)"""
    return service.revoke_invitation(team_id, invitation_id, caller)


@router.get("/invitations/lookup", response_model=AcceptInvitePage)
@limiter.limit(settings.invite_rate_limit)
async def lookup_invitation(
    request: Request,
    token: Optional[str] = Query(None),
    caller: Optional[Caller] = Depends(get_optional_caller),
    service: InvitationService = Depends(get_invitation_service)
):
    """Resolve an invitation token; login is not required"""
    return service.build_accept_invite_page(token, caller)


@router.post("/invitations/accept", response_model=InvitationActionResult)
@limiter.limit(settings.invite_rate_limit)
async def accept_invitation(
    request: Request,
    body: TokenRequest,
    caller: Caller = Depends(get_current_caller),
    service: InvitationService = Depends(get_invitation_service)
):
    """Accept an invitation as the logged-in user"""
    return service.accept_invitation(body.token, caller)


@router.post("/invitations/decline", response_model=InvitationActionResult)
@limiter.limit(settings.invite_rate_limit)
async def decline_invitation(
    request: Request,
    body: TokenRequest,
    caller: Optional[Caller] = Depends(get_optional_caller),
    service: InvitationService = Depends(get_invitation_service)
):
    """Decline an invitation; anyone holding the link may decline unless logged in as someone else"""
    return service.decline_invitation(body.token, caller.email if caller else None)
