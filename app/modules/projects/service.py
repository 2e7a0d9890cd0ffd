from supabase import Client
from app.modules.auth.schemas import Caller
from app.modules.projects.schemas import (
    ProjectCreate, ProjectUpdate, ProjectResponse, ProjectDetailResponse, TeamRef
)
from app.core.authorization import AuthorizationService
from app.core.errors import DependencyFailure, NotFound, ValidationError
from typing import List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Project name cannot be empty.")
    return cleaned


class ProjectService:
    def __init__(self, supabase: Client, authz: Optional[AuthorizationService] = None):
        self.supabase = supabase
        self.authz = authz or AuthorizationService(supabase)

    def create_project(self, project_data: ProjectCreate, caller: Caller) -> ProjectResponse:
        """Create a project owned by one of the caller's teams"""
        name = _clean_name(project_data.name)
        self.authz.require_team_member(caller.id, project_data.team_id)
        try:
            result = self.supabase.table("projects").insert({
                "name": name,
                "owner_team_id": project_data.team_id,
            }).execute()
        except Exception as e:
            logger.error(f"Error inserting project for team {project_data.team_id}: {e}")
            raise DependencyFailure("Failed to create project.")
        if not result.data:
            raise DependencyFailure("Failed to create project.")
        project = ProjectResponse(**result.data[0])
        logger.info(f"Project {project.id} created in team {project_data.team_id} by {caller.id}")
        return project

    def get_project(self, project_id: str, caller: Caller) -> ProjectDetailResponse:
        """Project plus its owning team. NotFound when absent, Forbidden for non-members."""
        project = self.authz.require_project_member(caller.id, project_id)
        team = self.authz.get_team(project["owner_team_id"])
        if not team:
            raise NotFound("Team not found")
        return ProjectDetailResponse(
            project=ProjectResponse(**project),
            team=TeamRef(id=team["id"], name=team["name"]),
        )

    def list_team_projects(self, team_id: str, caller: Caller) -> List[ProjectResponse]:
        self.authz.require_team_member(caller.id, team_id)
        try:
            result = self.supabase.table("projects")\
                .select("*")\
                .eq("owner_team_id", team_id)\
                .order("created_at", desc=True)\
                .execute()
            return [ProjectResponse(**p) for p in (result.data or [])]
        except Exception as e:
            logger.error(f"Error listing projects for team {team_id}: {e}")
            raise DependencyFailure("Failed to load projects")

    def rename_project(self, project_id: str, project_data: ProjectUpdate, caller: Caller) -> ProjectResponse:
        name = _clean_name(project_data.name)
        self.authz.require_project_member(caller.id, project_id)
        try:
            result = self.supabase.table("projects")\
                .update({"name": name, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", project_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error renaming project {project_id}: {e}")
            raise DependencyFailure("Failed to update project")
        if not result.data:
            raise NotFound("Project not found.")
        return ProjectResponse(**result.data[0])

    def delete_project(self, project_id: str, caller: Caller) -> bool:
        """Delete a project and, by cascade, all of its documents (owning team's owner only)"""
        self.authz.require_project_owner(caller.id, project_id)
        try:
            result = self.supabase.table("projects")\
                .delete()\
                .eq("id", project_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting project {project_id}: {e}")
            raise DependencyFailure("Failed to delete project")
        logger.info(f"Project {project_id} deleted by {caller.id}")
        return len(result.data or []) > 0
