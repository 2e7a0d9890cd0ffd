from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime

from app.core.authorization import TeamRole


class TeamCreate(BaseModel):
    name: str


class TeamUpdate(BaseModel):
    name: str


class TeamResponse(BaseModel):
    id: str
    name: str
    owner_user_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TeamWithRoleResponse(TeamResponse):
    role: TeamRole
    is_owner: bool


class TeamMemberResponse(BaseModel):
    team_id: str
    user_id: str
    role: TeamRole
    created_at: datetime

    class Config:
        from_attributes = True


class MemberRoleUpdate(BaseModel):
    role: TeamRole

    @field_validator("role")
    @classmethod
    def role_is_not_owner(cls, value: TeamRole) -> TeamRole:
        if value == TeamRole.OWNER:
            raise ValueError("Ownership cannot be granted through a role change")
        return value
