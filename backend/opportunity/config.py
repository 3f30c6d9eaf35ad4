from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./opportunity.db"

    # Auth
    secret_key: str = "change-me"
    auth_cookie_name: str = "auth_token"
    session_max_age_days: int = 30

    # Identity provider (OAuth)
    identity_provider: str = "supabase"  # supabase | mock
    identity_provider_url: str = ""
    identity_provider_anon_key: str = ""
    identity_provider_timeout_seconds: float = 10.0

    # Listing limits
    default_page_size: int = 20
    max_page_size: int = 100
    max_import_batch: int = 100

    # App
    debug: bool = False
    log_level: str = "INFO"
    frontend_url: str = "http://localhost:3000"
    allowed_origins: str = ""

    @field_validator("identity_provider")
    @classmethod
    def validate_identity_provider(cls, value: str) -> str:
        allowed = {"supabase", "mock"}
        if value not in allowed:
            raise ValueError(f"identity_provider must be one of {sorted(allowed)}")
        return value

    @field_validator("default_page_size", "max_page_size", "max_import_batch")
    @classmethod
    def validate_positive_limit(cls, value: int) -> int:
        if value < 1 or value > 1000:
            raise ValueError("page and batch sizes must be between 1 and 1000")
        return value

    def get_frontend_url(self) -> str:
        return self.frontend_url.rstrip("/")

    @property
    def allowed_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


settings = Settings()
