"""Configuration management for modelbridge.

Uses Pydantic Settings for type-safe, environment-based configuration.
"""

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv(override=False)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    app_name: str = Field("modelbridge", alias="MODELBRIDGE_APP_NAME")
    version: str = Field("0.1.0", alias="MODELBRIDGE_VERSION")
    environment: str = Field("development", alias="MODELBRIDGE_ENVIRONMENT")

    # Logging configuration
    log_level: str = Field("INFO", alias="MODELBRIDGE_LOG_LEVEL")
    log_format: str = Field("text", alias="MODELBRIDGE_LOG_FORMAT")  # text or json
    log_dir: str | None = Field(None, alias="MODELBRIDGE_LOG_DIR")

    # LLM timeouts (seconds). Applied to the HTTP chat transport only; the
    # stream bridge itself has no time-based logic.
    llm_global_timeout: int = Field(30, alias="MODELBRIDGE_LLM_GLOBAL_TIMEOUT")
    llm_streaming_read_timeout: int = Field(120, alias="MODELBRIDGE_LLM_STREAMING_READ_TIMEOUT")

    # Fernet key used to decrypt stored provider API keys
    llm_encryption_key: str | None = Field(None, alias="MODELBRIDGE_LLM_ENCRYPTION_KEY")

    # HTTP chat API
    openai_api_base: str = Field("https://api.openai.com/v1", alias="MODELBRIDGE_OPENAI_API_BASE")
    openai_api_key: str | None = Field(None, alias="MODELBRIDGE_OPENAI_API_KEY")
    openai_api_key_encrypted: str | None = Field(None, alias="MODELBRIDGE_OPENAI_API_KEY_ENCRYPTED")

    # Model defaults
    default_llm_model: str = Field("gpt-3.5-turbo", alias="MODELBRIDGE_DEFAULT_LLM_MODEL")
    gateway_default_model: str = Field("cohere.command-text-v14", alias="MODELBRIDGE_GATEWAY_DEFAULT_MODEL")
    llm_temperature_default: float = Field(0.7, alias="MODELBRIDGE_LLM_TEMPERATURE_DEFAULT")
    llm_max_tokens_default: int | None = Field(None, alias="MODELBRIDGE_LLM_MAX_TOKENS_DEFAULT")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["text", "json"]
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment setting."""
        valid_environments = ["development", "staging", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator(
        "log_dir",
        "llm_encryption_key",
        "openai_api_key",
        "openai_api_key_encrypted",
        "llm_max_tokens_default",
        mode="before",
    )
    @classmethod
    def validate_optional_strings(cls, v: str | None) -> str | None:
        """Treat blank optional strings as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("llm_temperature_default")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if v < 0 or v > 2:
            raise ValueError("Default temperature must be between 0 and 2")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        populate_by_name=True,
        extra="ignore",  # Ignore extra environment variables instead of forbidding them
    )


def get_settings() -> Settings:
    """Build a fresh settings instance from the environment."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance - will be created when first accessed
settings = None


def get_settings_instance() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global settings  # noqa: PLW0603
    if settings is None:
        settings = get_settings()
    return settings
