"""
Application configuration from environment variables.
Loads .env from the backend directory so Hygraph/Clerk keys are found regardless of cwd.
"""
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env next to backend/ (parent of school_api/); loaded explicitly so keys are set even when run from the repo root
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)
else:
    # Fallback: try backend/.env relative to cwd (e.g. when running from repo root)
    import os
    _cwd_env = Path(os.getcwd()) / "backend" / ".env"
    if _cwd_env.exists():
        from dotenv import load_dotenv
        load_dotenv(_cwd_env, override=False)


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Environment: development | production | test. NODE_ENV is accepted for existing deployments.
    env: str = Field(default="development", validation_alias=AliasChoices("ENV", "NODE_ENV"))
    port: int = 5000

    # CORS: single front-end origin
    frontend_url: str = "http://localhost:5173"

    # Hygraph content API. The VITE_ names are shared with the front-end .env.
    hygraph_endpoint: str = Field(default="", validation_alias=AliasChoices("HYGRAPH_ENDPOINT", "VITE_HYGRAPH_ENDPOINT"))
    hygraph_token: str = Field(default="", validation_alias=AliasChoices("HYGRAPH_TOKEN", "VITE_HYGRAPH_TOKEN"))
    # Permanent auth token with mutation rights; falls back to hygraph_token when empty.
    hygraph_mutation_token: str = ""
    hygraph_timeout_seconds: float = 15.0
    # Attempts for read queries only (429/5xx/transport errors). Mutations are sent once.
    hygraph_max_attempts: int = 3

    # Clerk. CLERK_JWT_KEY (PEM) enables networkless verification; otherwise JWKS is fetched with the secret key.
    clerk_secret_key: str = ""
    clerk_jwt_key: str = ""
    clerk_api_url: str = "https://api.clerk.com/v1"
    # Comma-separated allowed `azp` values; empty disables the check.
    clerk_authorized_parties: str = ""
    # Development only: treat every request as an ADMIN dev user. Ignored when ENV=production.
    clerk_dev_bypass: bool = False
    clerk_dev_user_id: str = "dev-user-uid"
    clerk_dev_user_email: str = "dev@example.com"

    # SMTP for the contact form. When email_host is empty, messages are logged and not sent.
    email_host: str = ""
    email_host_port: int = 587
    email_secure: bool = False
    email_user: str = ""
    email_pass: str = ""
    email_from: str = ""
    contact_recipient: str = ""

    # Fixed-window request budget per client IP per minute; 0 disables the limiter.
    rate_limit_per_minute: int = 300

    debug: bool = False

    @field_validator("env", mode="before")
    @classmethod
    def _normalize_env(cls, v: str) -> str:
        return (v or "development").strip().lower() if isinstance(v, str) else "development"

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    @property
    def mutation_token(self) -> str:
        """Token used for Hygraph mutations."""
        return (self.hygraph_mutation_token or self.hygraph_token or "").strip()

    @property
    def authorized_parties(self) -> list[str]:
        return [p.strip() for p in self.clerk_authorized_parties.split(",") if p.strip()]

    @property
    def dev_bypass_active(self) -> bool:
        return self.clerk_dev_bypass and not self.is_production


settings = Settings()
