"""
Tests for the config module.
"""

import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from commitdigest.config import (
    LLMProvider,
    StrategySettings,
    get_ignored_bot_emails,
    get_optional_env_var,
    get_required_env_var,
    load_environment_variables,
    load_summary_config,
    provider_settings_from_env,
)
from commitdigest.constants import DEFAULT_IGNORED_BOT_EMAILS, DEFAULT_NEXOS_ENDPOINT
from commitdigest.exceptions import ConfigurationError
from commitdigest.models import SummaryConfig


def test_get_optional_env_var():
    """Test getting optional environment variables."""
    with patch.dict(os.environ, {"TEST_VAR": "test_value"}):
        assert get_optional_env_var("TEST_VAR") == "test_value"
        assert get_optional_env_var("TEST_VAR", "default") == "test_value"

    assert get_optional_env_var("NON_EXISTENT_VAR") == ""
    assert get_optional_env_var("NON_EXISTENT_VAR", "default_value") == "default_value"


def test_get_required_env_var():
    """Test getting required environment variables."""
    with patch.dict(os.environ, {"REQUIRED_VAR": "required_value"}):
        assert get_required_env_var("REQUIRED_VAR") == "required_value"

    with pytest.raises(SystemExit):
        get_required_env_var("NON_EXISTENT_REQUIRED_VAR")


def test_load_environment_variables_with_dotenv():
    """Test loading environment variables from .env file."""
    with tempfile.TemporaryDirectory() as temp_dir:
        env_file = Path(temp_dir) / ".env"
        env_file.write_text("SECRET_GEMINI_API_KEY=from_dotenv\n")

        with patch("commitdigest.config.Path.cwd", return_value=Path(temp_dir)):
            with patch("commitdigest.config.load_dotenv") as mock_load_dotenv:
                load_environment_variables()
                mock_load_dotenv.assert_called_once_with(env_file, override=False)


def test_load_environment_variables_no_env_file():
    """Test that load_environment_variables handles missing .env files gracefully."""

    def mock_exists(self):
        return False

    with patch("commitdigest.config.load_dotenv") as mock_load_dotenv:
        with patch.object(Path, "exists", mock_exists):
            load_environment_variables()
            mock_load_dotenv.assert_not_called()


class TestLoadSummaryConfig:
    """Test the JSON summary configuration file."""

    def write_config(self, directory, data):
        path = Path(directory) / "config.json"
        path.write_text(json.dumps(data) if not isinstance(data, str) else data)
        return str(path)

    def test_defaults_without_path(self):
        assert load_summary_config(None) == SummaryConfig()

    def test_camel_case_keys(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = self.write_config(
                temp_dir,
                {
                    "customInstructions": "Be brief.",
                    "interestingKeywords": "WebGPU",
                    "focusAreas": ["GPU"],
                    "ignoredBotEmails": ["Bot@Example.com"],
                    "llmProvider": "nexos",
                    "outputPath": "digests/daily",
                    "strategy": "phased",
                    "breakingChangeCriteria": "Removed switches.",
                    "somethingElse": True,
                },
            )
            config = load_summary_config(path)

        assert config.custom_instructions == "Be brief."
        assert config.focus_areas == ["GPU"]
        assert config.llm_provider == "nexos"
        assert config.strategy == "phased"
        assert config.breaking_change_criteria == "Removed switches."

    def test_relative_path_is_resolved_against_cwd(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            self.write_config(temp_dir, {"strategy": "agentic"})
            with patch("commitdigest.config.Path.cwd", return_value=Path(temp_dir)):
                assert load_summary_config("config.json").strategy == "agentic"

    @pytest.mark.parametrize(
        "data",
        [
            {"outputPath": "../escape"},
            {"outputPath": "/absolute"},
            {"strategy": "exhaustive"},
            {"focusAreas": "GPU"},
            "[1, 2]",
            "{not json",
        ],
    )
    def test_invalid_config(self, data):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = self.write_config(temp_dir, data)
            with pytest.raises(ConfigurationError):
                load_summary_config(path)

    def test_missing_file(self):
        with pytest.raises(ConfigurationError, match="not found"):
            load_summary_config("/nonexistent/config.json")


def test_get_ignored_bot_emails():
    emails = get_ignored_bot_emails(SummaryConfig(ignored_bot_emails=["Bot@Example.com"]))
    assert emails[: len(DEFAULT_IGNORED_BOT_EMAILS)] == DEFAULT_IGNORED_BOT_EMAILS
    assert emails[-1] == "bot@example.com"


class TestProviderSettings:
    """Test adapter settings built from the environment."""

    def test_gemini(self):
        with patch.dict(os.environ, {"SECRET_GEMINI_API_KEY": "g-key"}, clear=True):
            settings = provider_settings_from_env("gemini")
        assert settings.api_key == "g-key"
        assert settings.model == "gemini-2.5-pro"
        assert settings.timeout == 300.0
        assert settings.max_attempts == 10

    def test_nexos_uses_its_endpoint(self):
        with patch.dict(os.environ, {"SECRET_NEXOS_TOKEN": "n-key"}, clear=True):
            settings = provider_settings_from_env(LLMProvider.NEXOS)
        assert settings.base_url == DEFAULT_NEXOS_ENDPOINT

    def test_model_override(self):
        env = {"OPENAI_API_KEY": "o-key", "MODEL_NAME": "gpt-4o"}
        with patch.dict(os.environ, env, clear=True):
            assert provider_settings_from_env("openai").model == "gpt-4o"

    def test_missing_key(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError, match="SECRET_GEMINI_API_KEY"):
                provider_settings_from_env("gemini")

    def test_unimplemented_provider(self):
        with pytest.raises(ConfigurationError, match="not yet implemented"):
            provider_settings_from_env("anthropic")


def test_strategy_settings_validation():
    assert StrategySettings().chunk_size == 250
    with pytest.raises(ConfigurationError):
        StrategySettings(chunk_size=0)
    with pytest.raises(ConfigurationError):
        StrategySettings(max_iterations=0)
