from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import Caller
from app.modules.teams.schemas import (
    TeamCreate, TeamUpdate, TeamResponse, TeamWithRoleResponse,
    TeamMemberResponse, MemberRoleUpdate
)
from app.modules.teams.service import TeamService
from app.core.dependencies import get_current_caller
from supabase import Client
from typing import List

router = APIRouter(prefix="/teams", tags=["teams"])


def get_team_service(supabase: Client = Depends(get_supabase)) -> TeamService:
    return TeamService(supabase)


@router.post("", response_model=TeamResponse, status_code=201)
async def create_team(
    team_data: TeamCreate,
    caller: Caller = Depends(get_current_caller),
    service: TeamService = Depends(get_team_service)
):
    """Create a new team owned by the caller"""
    return service.create_team(team_data, caller)


@router.get("", response_model=List[TeamWithRoleResponse])
async def list_teams(
    caller: Caller = Depends(get_current_caller),
    service: TeamService = Depends(get_team_service)
):
    """List the teams the caller belongs to"""
    return service.list_teams_for_user(caller)


@router.get("/{team_id}", response_model=TeamWithRoleResponse)
async def get_team(
    team_id: str,
    caller: Caller = Depends(get_current_caller),
    service: TeamService = Depends(get_team_service)
):
    """Get team by ID (members only)"""
    return service.get_team(team_id, caller)


@router.put("/{team_id}", response_model=TeamResponse)
async def rename_team(
    team_id: str,
    team_data: TeamUpdate,
    caller: Caller = Depends(get_current_caller),
    service: TeamService = Depends(get_team_service)
):
    """Rename team (owner only)"""
    return service.rename_team(team_id, team_data, caller)


@router.delete("/{team_id}", status_code=204)
async def delete_team(
    team_id: str,
    caller: Caller = Depends(get_current_caller),
    service: TeamService = Depends(get_team_service)
):
    """Delete team (owner only, team must not own projects)"""
    service.delete_team(team_id, caller)
    return None


@router.get("/{team_id}/members", response_model=List[TeamMemberResponse])
async def list_members(
    team_id: str,
    caller: Caller = Depends(get_current_caller),
    service: TeamService = Depends(get_team_service)
):
    """List all members of a team (members only)"""
    return service.list_members(team_id, caller)


@router.put("/{team_id}/members/{user_id}", response_model=TeamMemberResponse)
async def update_member_role(
    team_id: str,
    user_id: str,
    role_data: MemberRoleUpdate,
    caller: Caller = Depends(get_current_caller),
    service: TeamService = Depends(get_team_service)
):
    """Change a member's role (owner only)"""
    return service.update_member_role(team_id, user_id, role_data, caller)


@router.delete("/{team_id}/members/{user_id}", status_code=204)
async def remove_member(
    team_id: str,
    user_id: str,
    caller: Caller = Depends(get_current_caller),
    service: TeamService = Depends(get_team_service)
):
    """Remove a member from the team (owner only)"""
    service.remove_member(team_id, user_id, caller)
    return None


@router.post("/{team_id}/leave", status_code=204)
async def leave_team(
    team_id: str,
    caller: Caller = Depends(get_current_caller),
    service: TeamService = Depends(get_team_service)
):
    """Leave a team (any member except the owner)"""
    service.leave_team(team_id, caller)
    return None
