"""Application Settings - Central Configuration"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Storage backends: "mongo" for deployments, "memory" for local runs and tests
    store_backend: str = "mongo"
    cache_backend: str = "memory"

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "docrequest_dev"

    # Maintenance switch - blocks all draft writes when true
    maintenance_mode: bool = False

    # CORS - empty means any origin
    allowed_origins: str = ""

    # Rate limits (fixed window)
    save_rate_limit_count: int = 10
    save_rate_limit_window_seconds: int = 60
    admin_auth_rate_limit_count: int = 20
    admin_auth_rate_limit_window_seconds: int = 60

    # Draft writes
    draft_lock_timeout_seconds: float = 30.0

    # Identity token verification
    google_idtoken_verify_mode: str = "tokeninfo"  # tokeninfo | jwks
    google_tokeninfo_endpoint: str = "https://oauth2.googleapis.com/tokeninfo"
    google_jwks_uri: str = "https://www.googleapis.com/oauth2/v3/certs"
    google_client_id: str = ""
    google_allowed_domain: str = ""
    google_allowed_emails: str = ""
    token_cache_ttl_seconds: int = 300
    token_cache_expiry_guard_seconds: int = 10

    # Push notifications
    line_push_enabled: bool = False
    line_push_dry_run: bool = True
    line_channel_access_token: str = ""
    line_push_endpoint: str = "https://api.line.me/v2/bot/message/push"
    liff_app_base_url: str = ""

    # Audit
    audit_meta_max_len: int = 2000

    # Admin listing
    admin_list_default_limit: int = 50
    admin_list_max_limit: int = 200

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse allowed origins string to list, trailing slashes removed"""
        return [
            origin.strip().rstrip("/")
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    @property
    def google_allowed_emails_list(self) -> List[str]:
        """Parse allowed admin emails string to a lower-cased list"""
        return [
            email.strip().lower()
            for email in self.google_allowed_emails.split(",")
            if email.strip()
        ]

    @property
    def google_allowed_domain_normalized(self) -> str:
        """Allowed admin email domain without a leading @"""
        return self.google_allowed_domain.strip().lower().lstrip("@")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
