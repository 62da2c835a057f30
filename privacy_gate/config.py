"""
Privacy Gate Configuration

Settings are loaded from environment variables prefixed with
``TRUSTED_SERVER__`` (nested sections use ``__``), e.g.
``TRUSTED_SERVER__SYNTHETIC__SECRET_KEY``, or from a ``.env`` file.

The synthetic secret key is a SecretStr and is never logged or echoed.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from privacy_gate.constants import DEFAULT_SYNTHETIC_TEMPLATE, INSECURE_SECRET_KEY
from privacy_gate.errors import ConfigurationError, InsecureSecretKeyError, TemplateError
from privacy_gate.identity.template import validate_template
from privacy_gate.models.identity import ATTRIBUTE_DEFAULTS

ENVIRONMENT_VARIABLE_PREFIX = "TRUSTED_SERVER__"
ENVIRONMENT_VARIABLE_SEPARATOR = "__"


class PublisherSettings(BaseModel):
    domain: str = "localhost"
    cookie_domain: str = "localhost"


class SyntheticSettings(BaseModel):
    """Synthetic id derivation: HMAC secret and attribute template."""

    secret_key: SecretStr
    template: str = DEFAULT_SYNTHETIC_TEMPLATE

    @field_validator("secret_key")
    @classmethod
    def check_secret_key(cls, value: SecretStr) -> SecretStr:
        secret = value.get_secret_value()
        if not secret:
            raise ValueError("secret_key must not be empty")
        if secret == INSECURE_SECRET_KEY:
            raise ValueError("secret_key is set to the insecure default value")
        return value

    @field_validator("template")
    @classmethod
    def check_template(cls, value: str) -> str:
        try:
            names = validate_template(value, ATTRIBUTE_DEFAULTS)
        except TemplateError as e:
            raise ValueError(str(e)) from e
        if not names:
            raise ValueError("template must reference at least one request attribute")
        return value


class ConsentSettings(BaseModel):
    """How consent gates personalization."""

    # Vendor whose consent gates personalization; None checks purpose bits only
    vendor_id: Optional[int] = Field(default=None, gt=0)
    validate_with_vendor_list: bool = True
    vendor_list_refresh_days: int = Field(default=7, ge=1)
    # Minimum wait between refresh attempts started by requests
    vendor_list_retry_minutes: int = Field(default=60, ge=1)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix=ENVIRONMENT_VARIABLE_PREFIX,
        env_nested_delimiter=ENVIRONMENT_VARIABLE_SEPARATOR,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: Literal["development", "staging", "production", "testing"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool = False

    publisher: PublisherSettings = PublisherSettings()
    synthetic: SyntheticSettings
    consent: ConsentSettings = ConsentSettings()


def load_settings(**overrides) -> Settings:
    """
    Load and validate settings.

    Raises:
        InsecureSecretKeyError: the secret key is the insecure default
        ConfigurationError: any other missing or invalid setting
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        for error in e.errors():
            if error["loc"][-1:] == ("secret_key",) and "insecure" in error["msg"]:
                raise InsecureSecretKeyError() from e
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors(include_input=False)
        )
        raise ConfigurationError(f"Invalid settings: {details}") from e


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()
