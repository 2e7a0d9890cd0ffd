from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ProjectCreate(BaseModel):
    team_id: str
    name: str


class ProjectUpdate(BaseModel):
    name: str


class ProjectResponse(BaseModel):
    id: str
    name: str
    owner_team_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TeamRef(BaseModel):
    id: str
    name: str


class ProjectDetailResponse(BaseModel):
    project: ProjectResponse
    team: TeamRef
