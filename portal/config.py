"""
Configuration and settings for the account portal.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from portal.errors import ConfigurationError

REQUIRED_SERVICE_ACCOUNT_FIELDS = (
    "type",
    "project_id",
    "private_key_id",
    "private_key",
    "client_email",
    "client_id",
    "auth_uri",
    "token_uri",
)


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Firebase service account bundle
    firebase_type: Optional[str] = None
    firebase_project_id: Optional[str] = None
    firebase_private_key_id: Optional[str] = None
    firebase_private_key: Optional[str] = None
    firebase_client_email: Optional[str] = None
    firebase_client_id: Optional[str] = None
    firebase_auth_uri: Optional[str] = None
    firebase_token_uri: Optional[str] = None
    firebase_auth_provider_x509_cert_url: Optional[str] = None
    firebase_client_x509_cert_url: Optional[str] = None
    firebase_universe_domain: Optional[str] = None

    firebase_database_url: Optional[str] = None
    # Needed by the Identity Toolkit password check.
    firebase_web_api_key: Optional[str] = None

    # Sessions
    session_secret: Optional[str] = None
    session_cookie_name: str = Field(default="portal_session")
    session_cookie_secure: bool = Field(default=False)
    session_ttl_seconds: int = Field(default=86400, gt=0)
    session_key_prefix: str = Field(default="portal:session:")
    redis_url: Optional[str] = None

    # Accounts
    identifier_domain: str = Field(default="aicloude.com")
    legacy_password_reset_login: bool = Field(default=False)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="PORTAL_USE_IN_MEMORY_BACKENDS"
    )

    # HTTP
    static_dir: str = Field(default="public")
    cors_origins: list[str] = Field(default_factory=list)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    @field_validator("firebase_private_key")
    @classmethod
    def _unescape_private_key(cls, value: Optional[str]) -> Optional[str]:
        # Keys pasted into env files usually carry literal "\n" sequences.
        if value is None:
            return value
        return value.replace("\\n", "\n")

    @property
    def database_url(self) -> Optional[str]:
        if self.firebase_database_url:
            return self.firebase_database_url
        if self.firebase_project_id:
            return f"https://{self.firebase_project_id}.firebaseio.com"
        return None

    @property
    def session_secret_configured(self) -> bool:
        return bool(self.session_secret)

    def service_account_info(self) -> dict:
        """Return the service account bundle in the layout the Firebase SDK expects."""
        return {
            "type": self.firebase_type,
            "project_id": self.firebase_project_id,
            "private_key_id": self.firebase_private_key_id,
            "private_key": self.firebase_private_key,
            "client_email": self.firebase_client_email,
            "client_id": self.firebase_client_id,
            "auth_uri": self.firebase_auth_uri,
            "token_uri": self.firebase_token_uri,
            "auth_provider_x509_cert_url": self.firebase_auth_provider_x509_cert_url,
            "client_x509_cert_url": self.firebase_client_x509_cert_url,
            "universe_domain": self.firebase_universe_domain,
        }

    def missing_service_account_fields(self) -> list[str]:
        info = self.service_account_info()
        return [name for name in REQUIRED_SERVICE_ACCOUNT_FIELDS if not info[name]]

    def validate_for_startup(self) -> None:
        """
        Fail fast when the real Firebase backends are selected but cannot be
        initialised.
        """
        if self.use_in_memory_backends:
            return
        missing = self.missing_service_account_fields()
        if missing:
            raise ConfigurationError(
                f"Missing required service account field: {missing[0]}"
            )
        if not self.legacy_password_reset_login and not self.firebase_web_api_key:
            raise ConfigurationError(
                "FIREBASE_WEB_API_KEY is required to verify passwords"
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
