from __future__ import annotations

from typing import Any

import pytz
from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import DEFAULT_SIM_HOUR, DEFAULT_SIM_MINUTE, DEFAULT_SIM_TIMEZONE
from .errors import ConfigurationError

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    supabase_url: str = Field(validation_alias="SUPABASE_URL", min_length=1)
    service_key: str = Field(validation_alias="SUPABASE_SERVICE_ROLE_KEY", min_length=1, repr=False)
    sim_hour: int = Field(default=DEFAULT_SIM_HOUR, validation_alias="HBFL_SIM_HOUR", ge=0, le=23)
    sim_minute: int = Field(default=DEFAULT_SIM_MINUTE, validation_alias="HBFL_SIM_MINUTE", ge=0, le=59)
    sim_timezone: str = Field(default=DEFAULT_SIM_TIMEZONE, validation_alias="HBFL_SIM_TIMEZONE")
    log_level: str = Field(default="INFO", validation_alias="HBFL_LOG_LEVEL")

    @field_validator("sim_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper() or "INFO"
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def rest_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/rest/v1/"


def load_settings(**overrides: Any) -> Settings:
    """Read settings from the environment; raise ConfigurationError when unusable."""
    try:
        return Settings(**overrides)
    except PydanticValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise ConfigurationError(f"Invalid or missing configuration: {', '.join(fields) or exc}") from exc
