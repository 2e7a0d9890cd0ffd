import logging
from supabase import Client
from app.modules.auth.schemas import (
    Caller, LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
)
from app.core.errors import AppError, Unauthorized, ValidationError, DependencyFailure

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth"""
        try:
            user_metadata = {}
            if register_data.full_name:
                user_metadata["full_name"] = register_data.full_name

            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata
                }
            })

            if not auth_response.user:
                raise ValidationError("Failed to register user")

            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                message="User registered successfully"
            )
        except AppError:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise ValidationError("User already exists")
            raise DependencyFailure(f"Registration failed: {error_message}", dependency="auth")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise Unauthorized("Invalid credentials")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except AppError:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise Unauthorized("Invalid email or password")
            raise DependencyFailure(f"Login failed: {error_message}", dependency="auth")

    def get_current_user(self, token: str) -> Caller:
        """Resolve the caller from a Supabase Auth token. Checked on every request, never cached."""
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.info("Token rejected by Supabase Auth: %s", e)
            raise Unauthorized("Invalid or expired token")
        if not user_response or not user_response.user:
            raise Unauthorized("Invalid or expired token")
        user = user_response.user
        if not user.email:
            raise Unauthorized("Account has no verified email address")
        metadata = user.user_metadata or {}
        return Caller(id=user.id, email=user.email, full_name=metadata.get("full_name"))

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        try:
            # Supabase Auth tokens are stateless JWTs, so logout is mainly client-side
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning("Sign out failed: %s", e)
            return False
