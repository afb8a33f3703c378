"""
Companion API — Application Configuration
==========================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and produces one `Settings` object.
Who:   Built once by `create_app()` and handed to handlers and the platform
       client through FastAPI dependencies.
When:  At process start; never re-read per request.

Bucket names:
    Each stored-object kind resolves its bucket as
        <KIND>_BUCKET  →  STORAGE_BUCKET  →  built-in default
    so a deployment that puts everything in a single bucket only sets
    STORAGE_BUCKET.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


DEFAULT_ALLOWED_HEADERS = "authorization, x-client-info, apikey, content-type"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults are empty for the platform credentials; handlers that need the
    platform refuse to run (HTTP 500) until SUPABASE_URL and both keys are set.
    """

    # ── Managed Platform ──────────────────────────────────────────────────
    # What: Base URL of the platform project, e.g. https://xyz.supabase.co
    supabase_url: str = Field(default="", description="Platform base URL")

    # What: Privileged key that bypasses row-level policies (records, admin calls)
    supabase_service_role_key: str = Field(default="", description="Service-role key")

    # What: Public key sent alongside the caller's own token
    supabase_anon_key: str = Field(default="", description="Anonymous/public key")

    # What: Request-scoped timeout for every remote call, in seconds
    platform_timeout: float = Field(default=20.0, gt=0, le=300)

    # ── Object Storage ────────────────────────────────────────────────────
    storage_bucket: Optional[str] = Field(default=None, description="Shared bucket override")
    avatar_bucket: Optional[str] = Field(default=None)
    banner_bucket: Optional[str] = Field(default=None)
    profile_picture_bucket: Optional[str] = Field(default=None)

    # ── CORS ──────────────────────────────────────────────────────────────
    # What: Request headers browsers may send; echoed on every response
    cors_allow_headers: str = Field(default=DEFAULT_ALLOWED_HEADERS)

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def bucket_for(self, override: Optional[str], default: str) -> str:
        """Resolve a bucket name: specific override, shared override, default."""
        return override or self.storage_bucket or default

    @property
    def missing_platform_settings(self) -> List[str]:
        """Names of platform settings that are still empty."""
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.supabase_service_role_key:
            missing.append("SUPABASE_SERVICE_ROLE_KEY")
        if not self.supabase_anon_key:
            missing.append("SUPABASE_ANON_KEY")
        return missing

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Raises ValueError listing every missing variable.
        """
        missing = self.missing_platform_settings
        if missing:
            raise ValueError(
                "Configuration validation failed:\n"
                + "\n".join(f"  - {name} is not set" for name in missing)
            )
