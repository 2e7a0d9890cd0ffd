from pydantic import BaseModel, EmailStr
from typing import Optional, List


class Caller(BaseModel):
    """Authenticated identity for one request. Only the raw id and email are trusted."""
    id: str
    email: str
    full_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class MembershipSummary(BaseModel):
    team_id: str
    team_name: str
    role: str
    is_owner: bool


class MeResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    has_teams: bool
    teams: List[MembershipSummary]
