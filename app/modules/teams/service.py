from supabase import Client
from app.modules.auth.schemas import Caller
from app.modules.teams.schemas import (
    TeamCreate, TeamUpdate, TeamResponse, TeamWithRoleResponse,
    TeamMemberResponse, MemberRoleUpdate
)
from app.core.authorization import AuthorizationService, TeamRole
from app.core.errors import (
    AppError, Conflict, DependencyFailure, NotFound, ValidationError,
    FOREIGN_KEY_VIOLATION, error_code_of
)
from typing import List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

TEAM_HAS_PROJECTS = "Cannot delete team. Ensure all associated projects are removed or reassigned first."


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Team name cannot be empty")
    return cleaned


class TeamService:
    def __init__(self, supabase: Client, authz: Optional[AuthorizationService] = None):
        self.supabase = supabase
        self.authz = authz or AuthorizationService(supabase)

    def create_team(self, team_data: TeamCreate, caller: Caller) -> TeamResponse:
        """Create a team owned by the caller; the owner membership is written in the same transaction."""
        name = _clean_name(team_data.name)
        try:
            result = self.supabase.rpc("create_team_with_owner", {
                "p_name": name,
                "p_owner_user_id": caller.id,
            }).execute()
        except Exception as e:
            logger.error(f"Error creating team for {caller.id}: {e}")
            raise DependencyFailure("Failed to create team")
        if not result.data:
            raise DependencyFailure("Failed to create team")
        row = result.data[0] if isinstance(result.data, list) else result.data
        logger.info(f"Team {row['id']} created by {caller.id}")
        return TeamResponse(**row)

    def list_teams_for_user(self, caller: Caller) -> List[TeamWithRoleResponse]:
        """Teams the caller belongs to, with their role in each."""
        try:
            memberships = self.supabase.table("team_memberships")\
                .select("team_id, role")\
                .eq("user_id", caller.id)\
                .execute()
            if not memberships.data:
                return []
            roles = {m["team_id"]: m["role"] for m in memberships.data}
            result = self.supabase.table("teams")\
                .select("*")\
                .in_("id", list(roles.keys()))\
                .order("created_at", desc=True)\
                .execute()
            return [
                TeamWithRoleResponse(
                    **team,
                    role=roles[team["id"]],
                    is_owner=team.get("owner_user_id") == caller.id,
                )
                for team in (result.data or [])
            ]
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error listing teams for {caller.id}: {e}")
            raise DependencyFailure("Failed to load teams")

    def get_team(self, team_id: str, caller: Caller) -> TeamWithRoleResponse:
        """Team details for a member."""
        self.authz.require_team_member(caller.id, team_id)
        try:
            result = self.supabase.table("teams")\
                .select("*")\
                .eq("id", team_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching team {team_id}: {e}")
            raise DependencyFailure("Failed to load team")
        if not result.data:
            raise NotFound("Team not found")
        team = result.data[0]
        role = self.authz.get_membership_role(caller.id, team_id) or TeamRole.MEMBER
        return TeamWithRoleResponse(**team, role=role, is_owner=team.get("owner_user_id") == caller.id)

    def rename_team(self, team_id: str, team_data: TeamUpdate, caller: Caller) -> TeamResponse:
        """Rename (owner only)"""
        name = _clean_name(team_data.name)
        self.authz.require_team_owner(caller.id, team_id)
        try:
            result = self.supabase.table("teams")\
                .update({"name": name, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", team_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating team name for {team_id}: {e}")
            raise DependencyFailure("Failed to update team name")
        if not result.data:
            raise NotFound("Team not found")
        return TeamResponse(**result.data[0])

    def delete_team(self, team_id: str, caller: Caller) -> bool:
        """Delete (owner only). Memberships and invitations cascade; projects block the delete."""
        self.authz.require_team_owner(caller.id, team_id)
        try:
            projects = self.supabase.table("projects")\
                .select("id")\
                .eq("owner_team_id", team_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching projects for team deletion check {team_id}: {e}")
            raise DependencyFailure("Could not verify team ownership.")
        if projects.data:
            raise Conflict(TEAM_HAS_PROJECTS)
        try:
            result = self.supabase.table("teams")\
                .delete()\
                .eq("id", team_id)\
                .execute()
        except Exception as e:
            # A project created after the check above still trips the foreign key
            if error_code_of(e) == FOREIGN_KEY_VIOLATION:
                raise Conflict(TEAM_HAS_PROJECTS)
            logger.error(f"Error deleting team {team_id}: {e}")
            raise DependencyFailure("Failed to delete team.")
        logger.info(f"Team {team_id} deleted by {caller.id}")
        return len(result.data or []) > 0

    def list_members(self, team_id: str, caller: Caller) -> List[TeamMemberResponse]:
        """List all members of a team (members only)"""
        self.authz.require_team_member(caller.id, team_id)
        try:
            result = self.supabase.table("team_memberships")\
                .select("*")\
                .eq("team_id", team_id)\
                .order("created_at")\
                .execute()
            return [TeamMemberResponse(**member) for member in (result.data or [])]
        except Exception as e:
            logger.error(f"Error fetching team members for {team_id}: {e}")
            raise DependencyFailure("Failed to load team members")

    def update_member_role(self, team_id: str, user_id: str, role_data: MemberRoleUpdate, caller: Caller) -> TeamMemberResponse:
        """Change a member's role (owner only). Ownership itself never moves through here."""
        if role_data.role == TeamRole.OWNER:
            raise ValidationError("Ownership cannot be granted through a role change")
        team = self.authz.require_team_owner(caller.id, team_id)
        if user_id == team.get("owner_user_id"):
            raise Conflict("The team owner's role cannot be changed")
        try:
            result = self.supabase.table("team_memberships")\
                .update({"role": role_data.role.value})\
                .eq("team_id", team_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating role of {user_id} in {team_id}: {e}")
            raise DependencyFailure("Failed to update member role")
        if not result.data:
            raise NotFound("Member not found")
        return TeamMemberResponse(**result.data[0])

    def remove_member(self, team_id: str, user_id: str, caller: Caller) -> bool:
        """Remove a member (owner only). The owner cannot be removed."""
        team = self.authz.require_team_owner(caller.id, team_id)
        if user_id == team.get("owner_user_id"):
            raise Conflict("The team owner cannot be removed from the team")
        return self._delete_membership(team_id, user_id)

    def leave_team(self, team_id: str, caller: Caller) -> bool:
        team = self.authz.require_team_member(caller.id, team_id)
        if caller.id == team.get("owner_user_id"):
            raise Conflict("The team owner cannot leave the team. Delete the team instead.")
        return self._delete_membership(team_id, caller.id)

    def _delete_membership(self, team_id: str, user_id: str) -> bool:
        try:
            result = self.supabase.table("team_memberships")\
                .delete()\
                .eq("team_id", team_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error removing {user_id} from {team_id}: {e}")
            raise DependencyFailure("Failed to remove member")
        if not result.data:
            raise NotFound("Member not found")
        logger.info(f"User {user_id} removed from team {team_id}")
        return True
