"""
Authorization Service

Single place that answers "may this caller act on this team / project".
Every mutating service calls one of the require_* helpers first, even where
row-level security in the database would also refuse the write: resource ids
arrive from the client and ownership is always re-derived server-side.

Nothing here is cached. Roles and ownership can change between two requests,
so each call goes back to the store.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from supabase import Client

from app.core.errors import DependencyFailure, Forbidden, NotFound, Unauthorized

logger = logging.getLogger(__name__)


class TeamRole(str, Enum):
    """Closed role set shared by team_memberships.role and team_invitations.role."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


INVITABLE_ROLES = (TeamRole.ADMIN, TeamRole.MEMBER)


class AuthorizationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _fetch_one(self, table: str, columns: str, **filters: Any) -> Optional[Dict[str, Any]]:
        try:
            query = self.supabase.table(table).select(columns)
            for column, value in filters.items():
                query = query.eq(column, value)
            result = query.limit(1).execute()
        except Exception as e:
            # Access control must not degrade to "allowed" when the store is down
            logger.error(f"Authorization lookup on {table} failed: {e}")
            raise DependencyFailure("Could not verify access rights")
        rows = result.data or []
        return rows[0] if rows else None

    def get_team(self, team_id: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one("teams", "id, name, owner_user_id", id=team_id)

    def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one("projects", "id, name, owner_team_id, created_at, updated_at", id=project_id)

    def get_membership_role(self, caller_id: Optional[str], team_id: str) -> Optional[TeamRole]:
        if not caller_id:
            return None
        row = self._fetch_one("team_memberships", "role", team_id=team_id, user_id=caller_id)
        if not row:
            return None
        try:
            return TeamRole(row["role"])
        except ValueError:
            logger.warning(f"Unknown role {row['role']!r} on membership ({team_id}, {caller_id})")
            return None

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def is_team_member(self, caller_id: Optional[str], team_id: str) -> bool:
        """True iff a membership row exists for (team_id, caller_id)."""
        if not caller_id:
            return False
        return self._fetch_one("team_memberships", "team_id", team_id=team_id, user_id=caller_id) is not None

    def is_team_owner(self, caller_id: Optional[str], team_id: str) -> bool:
        """True iff teams.owner_user_id is the caller."""
        if not caller_id:
            return False
        team = self.get_team(team_id)
        return bool(team) and team.get("owner_user_id") == caller_id

    def is_project_member(self, caller_id: Optional[str], project_id: str) -> bool:
        """Project -> owner_team_id -> membership."""
        if not caller_id:
            return False
        project = self.get_project(project_id)
        if not project:
            return False
        return self.is_team_member(caller_id, project["owner_team_id"])

    def is_project_owner(self, caller_id: Optional[str], project_id: str) -> bool:
        """Project -> owner_team_id -> team ownership."""
        if not caller_id:
            return False
        project = self.get_project(project_id)
        if not project:
            return False
        return self.is_team_owner(caller_id, project["owner_team_id"])

    # ------------------------------------------------------------------
    # Guards used by services: NotFound when absent, Forbidden when denied
    # ------------------------------------------------------------------

    def require_team_member(self, caller_id: Optional[str], team_id: str) -> Dict[str, Any]:
        if not caller_id:
            raise Unauthorized()
        team = self.get_team(team_id)
        if not team:
            raise NotFound("Team not found")
        if not self.is_team_member(caller_id, team_id):
            logger.warning(f"User {caller_id} denied access to team {team_id}")
            raise Forbidden("You must be a member of this team")
        return team

    def require_team_owner(self, caller_id: Optional[str], team_id: str) -> Dict[str, Any]:
        if not caller_id:
            raise Unauthorized()
        team = self.get_team(team_id)
        if not team:
            raise NotFound("Team not found")
        if team.get("owner_user_id") != caller_id:
            logger.warning(f"User {caller_id} attempted an owner-only action on team {team_id}")
            raise Forbidden("Only the team owner can perform this action")
        return team

    def require_project_member(self, caller_id: Optional[str], project_id: str) -> Dict[str, Any]:
        if not caller_id:
            raise Unauthorized()
        project = self.get_project(project_id)
        if not project:
            raise NotFound("Project not found.")
        if not self.is_team_member(caller_id, project["owner_team_id"]):
            logger.warning(f"User {caller_id} denied access to project {project_id}")
            raise Forbidden("You do not have permission to view this project.")
        return project

    def require_project_owner(self, caller_id: Optional[str], project_id: str) -> Dict[str, Any]:
        if not caller_id:
            raise Unauthorized()
        project = self.get_project(project_id)
        if not project:
            raise NotFound("Project not found.")
        if not self.is_team_owner(caller_id, project["owner_team_id"]):
            logger.warning(f"User {caller_id} attempted an owner-only action on project {project_id}")
            raise Forbidden("Only the owning team's owner can perform this action")
        return project
