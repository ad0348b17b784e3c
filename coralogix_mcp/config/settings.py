"""
Process-level configuration for the Coralogix API connection.
"""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import ConfigurationError
from .limits import CORALOGIX_DOMAINS, QUERY_ENDPOINT


class CoralogixSettings(BaseSettings):
    """Configuration for the Coralogix query API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_key: str = Field(..., min_length=1, alias="CORALOGIX_API_KEY")
    domain: str = Field(..., alias="CORALOGIX_DOMAIN")
    request_timeout: float = Field(default=30.0, gt=0, alias="CORALOGIX_REQUEST_TIMEOUT")
    max_retries: int = Field(default=3, ge=0, alias="CORALOGIX_MAX_RETRIES")
    retry_initial_delay: float = Field(default=1.0, ge=0, alias="CORALOGIX_RETRY_DELAY")

    @field_validator("api_key", mode="before")
    @classmethod
    def strip_api_key(cls, v: str | None) -> str | None:
        """Treat a blank key the same as a missing one."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("domain", mode="before")
    @classmethod
    def validate_domain(cls, v: str) -> str:
        """Normalize the domain selector and check it against the known regions."""
        if not isinstance(v, str):
            raise ValueError("domain must be a string")
        normalized = v.strip().upper()
        if normalized not in CORALOGIX_DOMAINS:
            valid = ", ".join(CORALOGIX_DOMAINS)
            raise ValueError(f"Invalid Coralogix domain '{v}'. Valid domains: {valid}")
        return normalized

    @property
    def base_url(self) -> str:
        return CORALOGIX_DOMAINS[self.domain]

    @property
    def query_url(self) -> str:
        return f"{self.base_url}{QUERY_ENDPOINT}"


def load_settings(**overrides: object) -> CoralogixSettings:
    """
    Load settings from the environment (and .env), converting validation
    failures into a ConfigurationError.

    Args:
        **overrides: Explicit values keyed by environment variable name, which
            take precedence over the environment and .env

    Returns:
        Validated CoralogixSettings

    Raises:
        ConfigurationError: If the API key is missing or the domain is invalid
    """
    try:
        return CoralogixSettings(**overrides)  # type: ignore[arg-type]
    except ValidationError as e:
        problems = []
        settings_fields = []
        for err in e.errors():
            location = ".".join(str(part) for part in err.get("loc", ()))
            settings_fields.append(location)
            problems.append(f"{location}: {err.get('msg')}")
        raise ConfigurationError(
            "Invalid Coralogix configuration: " + "; ".join(problems),
            setting=", ".join(settings_fields) or None,
            original_error=e,
        ) from e
