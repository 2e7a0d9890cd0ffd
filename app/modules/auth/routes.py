from fastapi import APIRouter, Depends
from app.modules.auth.schemas import (
    Caller, LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    MembershipSummary, MeResponse
)
from app.modules.auth.service import AuthService
from app.modules.teams.routes import get_team_service
from app.modules.teams.service import TeamService
from app.core.dependencies import get_auth_service, get_current_caller, get_current_token

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(
    caller: Caller = Depends(get_current_caller),
    team_service: TeamService = Depends(get_team_service),
):
    """Current user and their team memberships (for the dashboard)."""
    teams = [
        MembershipSummary(team_id=t.id, team_name=t.name, role=t.role.value, is_owner=t.is_owner)
        for t in team_service.list_teams_for_user(caller)
    ]
    return MeResponse(
        id=caller.id,
        email=caller.email,
        full_name=caller.full_name,
        has_teams=bool(teams),
        teams=teams,
    )
