"""Unit tests for Settings field validators and the settings singleton."""

import pytest
from pydantic import ValidationError

from modelbridge.core import config
from modelbridge.core.config import Settings, get_settings_instance


class TestValidateLogSettings:
    """Tests for the log level and log format validators."""

    def test_log_level_uppercased(self) -> None:
        settings = Settings(_env_file=None, MODELBRIDGE_LOG_LEVEL="warning")
        assert settings.log_level == "WARNING"

    def test_invalid_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Log level must be one of"):
            Settings(_env_file=None, MODELBRIDGE_LOG_LEVEL="LOUD")

    def test_log_format_lowercased(self) -> None:
        settings = Settings(_env_file=None, MODELBRIDGE_LOG_FORMAT="JSON")
        assert settings.log_format == "json"

    def test_invalid_log_format_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Log format must be one of"):
            Settings(_env_file=None, MODELBRIDGE_LOG_FORMAT="xml")


class TestValidateEnvironment:
    def test_case_insensitive(self) -> None:
        settings = Settings(_env_file=None, MODELBRIDGE_ENVIRONMENT="Production")
        assert settings.environment == "production"

    def test_invalid_value_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Environment must be one of"):
            Settings(_env_file=None, MODELBRIDGE_ENVIRONMENT="qa")


class TestOptionalValues:
    """Blank optional values are treated as unset."""

    def test_blank_api_key_is_none(self) -> None:
        settings = Settings(_env_file=None, MODELBRIDGE_OPENAI_API_KEY="   ")
        assert settings.openai_api_key is None

    def test_blank_max_tokens_is_none(self) -> None:
        settings = Settings(_env_file=None, MODELBRIDGE_LLM_MAX_TOKENS_DEFAULT="")
        assert settings.llm_max_tokens_default is None

    def test_max_tokens_parsed(self) -> None:
        settings = Settings(_env_file=None, MODELBRIDGE_LLM_MAX_TOKENS_DEFAULT="256")
        assert settings.llm_max_tokens_default == 256


class TestValidateTemperature:
    def test_in_range_accepted(self) -> None:
        settings = Settings(_env_file=None, MODELBRIDGE_LLM_TEMPERATURE_DEFAULT=1.5)
        assert settings.llm_temperature_default == 1.5

    def test_out_of_range_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Default temperature must be between 0 and 2"):
            Settings(_env_file=None, MODELBRIDGE_LLM_TEMPERATURE_DEFAULT=2.5)


def test_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("MODELBRIDGE_DEFAULT_LLM_MODEL", "gpt-env")
    monkeypatch.setenv("MODELBRIDGE_LLM_GLOBAL_TIMEOUT", "5")

    settings = Settings(_env_file=None)

    assert settings.default_llm_model == "gpt-env"
    assert settings.llm_global_timeout == 5


def test_settings_instance_is_cached(monkeypatch) -> None:
    monkeypatch.setattr(config, "settings", None)

    first = get_settings_instance()

    assert get_settings_instance() is first
