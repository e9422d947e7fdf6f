"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with QUILL_ prefix.
No YAML files, no file-based config — just env vars (12-factor app style).

Learn: pydantic-settings auto-loads from environment, validates types,
provides defaults. Every knob the auth layer depends on (secret, issuer,
audience, token lifetime, hashing cost) lives here.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via QUILL_* env vars."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./quill.db"
    auto_create_tables: bool = True

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "quill"
    jwt_audience: str = "quill-users"
    access_token_expire_minutes: int = 60 * 24 * 7
    bcrypt_rounds: int = 12

    # Input rules
    password_min_length: int = 6
    title_min_length: int = 3
    content_min_length: int = 10
    summary_max_length: int = 200

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

    model_config = {"env_prefix": "QUILL_"}

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure sensitive defaults are changed in non-development environments."""
        if (
            self.environment != "development"
            and self.jwt_secret == "change-me-in-production"
        ):
            raise ValueError(
                "QUILL_JWT_SECRET must be set to a secure value in "
                "non-development environments. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        return self


# Singleton: import this everywhere
settings = Settings()
