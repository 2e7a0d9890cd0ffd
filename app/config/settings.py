from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Used for the public invitation landing page and the sweeper

    # AWS S3 for project assets (falls back to Supabase Storage when incomplete)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None

    # Supabase Storage
    assets_bucket: str = "project-assets"
    signed_url_ttl_seconds: int = 3600
    max_asset_bytes: int = 50 * 1024 * 1024

    # Invitation email (Resend)
    app_base_url: str = "http://localhost:5173"
    resend_api_url: str = "https://api.resend.com/emails"
    resend_api_key: Optional[str] = None
    email_from_address: Optional[str] = None
    email_timeout_seconds: float = 10.0

    # Invitations
    invitation_expiry_days: int = 7
    invitation_sweep_interval_seconds: int = 300
    enable_invitation_sweeper: bool = False

    # App
    app_name: str = "greenlight-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    invite_rate_limit: str = "20/minute"  # token-bearing invitation endpoints

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def s3_configured(self) -> bool:
        return all([self.aws_access_key_id, self.aws_secret_access_key, self.s3_bucket_name])

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def invite_link(self, token: str) -> str:
        return f"{self.app_base_url.rstrip('/')}/accept-invite?token={token}"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
