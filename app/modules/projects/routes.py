from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import Caller
from app.modules.projects.schemas import (
    ProjectCreate, ProjectUpdate, ProjectResponse, ProjectDetailResponse
)
from app.modules.projects.service import ProjectService
from app.core.dependencies import get_current_caller
from supabase import Client
from typing import List

router = APIRouter(prefix="/projects", tags=["projects"])


def get_project_service(supabase: Client = Depends(get_supabase)) -> ProjectService:
    return ProjectService(supabase)


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    project_data: ProjectCreate,
    caller: Caller = Depends(get_current_caller),
    service: ProjectService = Depends(get_project_service)
):
    """Create a project in a team the caller belongs to"""
    return service.create_project(project_data, caller)


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    team_id: str = Query(...),
    caller: Caller = Depends(get_current_caller),
    service: ProjectService = Depends(get_project_service)
):
    """List a team's projects (members only)"""
    return service.list_team_projects(team_id, caller)


@router.get("/{project_id}", response_model=ProjectDetailResponse)
async def get_project(
    project_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ProjectService = Depends(get_project_service)
):
    """Get project with its owning team (members only)"""
    return service.get_project(project_id, caller)


@router.put("/{project_id}", response_model=ProjectResponse)
async def rename_project(
    project_id: str,
    project_data: ProjectUpdate,
    caller: Caller = Depends(get_current_caller),
    service: ProjectService = Depends(get_project_service)
):
    return service.rename_project(project_id, project_data, caller)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ProjectService = Depends(get_project_service)
):
    """Delete project (owner of the owning team only)"""
    service.delete_project(project_id, caller)
    return None
