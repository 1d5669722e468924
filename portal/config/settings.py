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

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "agency_portal_dev"

    # Session tokens issued at login
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiry_minutes: int = 60 * 12

    # Client core -> collaborator transport
    api_base_url: str = "http://127.0.0.1:8000/api/v1"
    api_timeout_seconds: float = 15.0

    # Client-local durable session storage (auth_user / auth_impersonation / auth_token)
    session_storage_path: str = "./storage/session.json"

    # Route guard: unmatched routes are denied unless this is set
    route_default_allow: bool = False

    # Where the UI goes after an admin stops impersonating ("/login" forces a fresh login)
    stop_impersonation_redirect: str = "/"

    # Drop field-update responses that arrive after a newer one was applied
    discard_stale_responses: bool = True

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"
    log_to_files: bool = True

    # CORS - set to "*" to allow all origins
    cors_origins: str = "*"

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
