from pydantic_settings import BaseSettings
from functools import lru_cache
import os


class Settings(BaseSettings):
    app_name: str = "Resume Tailor API"
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    log_level: str = "INFO"

    # Database - supports both SQLite (local) and PostgreSQL (production)
    database_url: str = "sqlite+aiosqlite:///./resume_tailor.db"

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000"

    # Supabase storage (source PDFs)
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    resume_bucket: str = "resumes"
    signed_url_expires_seconds: int = 3600

    # Upload limits (matches the storage bucket limit)
    max_upload_mb: int = 10

    # Authentication backend: "supabase" or "clerk"
    auth_provider: str = "supabase"
    supabase_jwt_secret: str = ""
    clerk_jwks_url: str = ""
    clerk_issuer: str = ""
    clerk_secret_key: str = ""  # Backend API key, used to revoke sessions on sign-out
    clerk_api_url: str = "https://api.clerk.com/v1"

    # AI/LLM Configuration
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"

    # Import pipeline status display delays (seconds)
    import_done_reset_seconds: float = 4.0
    import_error_reset_seconds: float = 4.0
    import_sync_error_reset_seconds: float = 3.0

    # Editor preview debounce (seconds)
    preview_debounce_seconds: float = 0.5

    class Config:
        env_file = ".env"
        extra = "ignore"
        # Make field names case-insensitive for environment variables
        case_sensitive = False

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def get_cors_origins(self) -> list:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
