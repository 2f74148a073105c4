from typing import List

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Optional:
      - API_PREFIX: prefix for versioned routes (kept constant for reverse-proxy routing)
      - CORS_ORIGINS: comma-separated origins added to the frontend defaults
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_title: str = Field(
        default="BrezelScraper API",
        validation_alias="APP_TITLE",
    )
    app_version: str = Field(
        default="0.1.0",
        validation_alias="VERSION",
        description="Release version; also reported by the version endpoint",
    )

    api_prefix: str = "/api/v1"

    cors_origins: str = Field(
        default="",
        validation_alias="CORS_ORIGINS",
        description="Comma-separated list of extra allowed origins",
    )

    @property
    def allowed_origins(self) -> List[str]:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
        for origin in self.cors_origins.split(","):
            origin = origin.strip()
            if origin and origin not in origins:
                origins.append(origin)
        return origins


def clean_text(value: str) -> str:
    """
    Make an environment value valid UTF-8.

    Undecodable bytes surface in os.environ as lone surrogates; they are
    replaced with U+FFFD.
    """
    try:
        raw = value.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        raw = value.encode("utf-8", "replace")
    return raw.decode("utf-8", "replace")


class BuildSettings(BaseSettings):
    """Build metadata injected into the container at build/deploy time.

    Instantiate per request: values are read from the process environment
    when the object is created. Unset and empty variables both fall back to
    the field default.
    """

    model_config = SettingsConfigDict(extra="ignore")

    version: str = Field(default="", validation_alias="VERSION")
    build_date: str = Field(default="", validation_alias="BUILD_DATE")
    git_commit: str = Field(default="", validation_alias="GIT_COMMIT")
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")

    @field_validator("version", "build_date", "git_commit", "environment", mode="before")
    @classmethod
    def _clean_value(cls, value, info: ValidationInfo):
        if isinstance(value, str):
            value = clean_text(value)
        if info.field_name == "environment" and (value is None or value == ""):
            return "development"
        return value


settings = Settings()
