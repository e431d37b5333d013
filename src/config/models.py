"""
Configuration models.

Validated shape of configuration.yaml. Secrets are held as SecretStr and
only revealed when the email client builds its auth header.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EmailProvider(str, Enum):
    HTTP = "http"
    DEV = "dev"


class ApplicationSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    base_url: str = "http://127.0.0.1:8000"
    site_name: str = "Our Newsletter"


class DatabaseSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = "./data/newsletter.db"
    busy_timeout_seconds: float = Field(default=5.0, gt=0)
    migrations_dir: str = "migrations"


class EmailClientSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    provider: EmailProvider = EmailProvider.DEV
    base_url: str = "https://api.mailjet.com/v3.1"
    sender_email: str
    sender_name: str | None = None
    api_key: SecretStr = SecretStr("")
    api_secret: SecretStr = SecretStr("")
    timeout_milliseconds: int = Field(default=10_000, gt=0)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_milliseconds / 1000

    @model_validator(mode="after")
    def _require_credentials_for_http(self) -> "EmailClientSettings":
        if self.provider is EmailProvider.HTTP:
            if not self.api_key.get_secret_value() or not self.api_secret.get_secret_value():
                raise ValueError("email_client.api_key and api_secret are required for http")
        return self


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    application: ApplicationSettings = Field(default_factory=ApplicationSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    email_client: EmailClientSettings
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level
