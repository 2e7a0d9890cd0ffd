"""
Core dependencies for route protection.

Every request resolves its caller here and nowhere else; services receive the
resulting Caller and a Supabase client explicitly.
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase, get_auth_supabase
from app.modules.auth.schemas import Caller
from app.modules.auth.service import AuthService
from app.core.authorization import AuthorizationService
from app.core.errors import Unauthorized
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_auth_supabase)) -> AuthService:
    return AuthService(supabase)


def get_authorization_service(supabase: Client = Depends(get_supabase)) -> AuthorizationService:
    return AuthorizationService(supabase)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    return credentials.credentials


def get_current_caller(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Caller:
    """Authenticated caller; raises Unauthorized when there is none."""
    return auth_service.get_current_user(token)


def get_optional_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[Caller]:
    """Caller when a valid token is present, otherwise None (public invitation pages)."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return auth_service.get_current_user(credentials.credentials)
    except Unauthorized:
        return None
