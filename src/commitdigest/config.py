"""
Configuration module for commitdigest.

Handles loading environment variables from .env files and system environment,
the JSON summary configuration file, and the settings objects handed to the
platform adapters and the orchestration strategy.
"""

import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CHUNK_THRESHOLD,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_IGNORED_BOT_EMAILS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_CHUNK_ITERATIONS,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_NEXOS_ENDPOINT,
    DEFAULT_NEXOS_MODEL,
    DEFAULT_OPENAI_ENDPOINT,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT,
    ENV_VARS,
)
from .exceptions import ConfigurationError
from .models import SummaryConfig

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    GEMINI = "gemini"
    NEXOS = "nexos"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class StrategyKind(str, Enum):
    AGENTIC = "agentic"
    PHASED = "phased"


# JSON key -> SummaryConfig attribute
_CONFIG_KEYS = {
    "customInstructions": "custom_instructions",
    "interestingKeywords": "interesting_keywords",
    "focusAreas": "focus_areas",
    "ignoredBotEmails": "ignored_bot_emails",
    "llmProvider": "llm_provider",
    "outputPath": "output_path",
    "strategy": "strategy",
    "breakingChangeCriteria": "breaking_change_criteria",
}


@dataclass
class ProviderSettings:
    """Connection and retry settings for one platform adapter."""

    api_key: str
    model: str
    base_url: str | None = None
    temperature: float = DEFAULT_TEMPERATURE
    timeout: float = DEFAULT_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    linear_backoff: bool = False
    jitter: float = 0.0


@dataclass
class StrategySettings:
    """Chunking and iteration limits of the orchestration strategy."""

    chunk_threshold: int = DEFAULT_CHUNK_THRESHOLD
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    max_chunk_iterations: int = DEFAULT_MAX_CHUNK_ITERATIONS

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ConfigurationError("chunk_size must be a positive integer")
        if self.max_iterations <= 0 or self.max_chunk_iterations <= 0:
            raise ConfigurationError("iteration caps must be positive integers")


def load_environment_variables() -> None:
    """
    Load environment variables from .env file if it exists.

    This function looks for .env files in the following order:
    1. Current working directory
    2. User's home directory
    3. Directory containing the commitdigest package
    """
    # Possible .env file locations in order of preference
    env_paths = [
        Path.cwd() / ".env",  # Current working directory
        Path.home() / ".env",  # User's home directory
        Path(__file__).parent.parent.parent / ".env",  # Project root
    ]

    for env_path in env_paths:
        if env_path.exists() and env_path.is_file():
            load_dotenv(env_path, override=False)
            break


def get_required_env_var(var_name: str, description: Optional[str] = None) -> str:
    """
    Get a required environment variable.

    Args:
        var_name: Name of the environment variable
        description: Optional description of what the variable is used for

    Returns:
        The value of the environment variable

    Raises:
        SystemExit: If the environment variable is not set
    """
    value = os.getenv(var_name)
    if not value:
        error_msg = f"Error: {var_name} environment variable not set"
        if description:
            error_msg += f"\n{description}"
        print(error_msg)
        raise SystemExit(1)
    return value


def get_optional_env_var(var_name: str, default: str = "") -> str:
    """
    Get an optional environment variable with a default value.

    Args:
        var_name: Name of the environment variable
        default: Default value if the variable is not set

    Returns:
        The value of the environment variable or the default value
    """
    return os.getenv(var_name, default)


def load_summary_config(config_path: str | None = None) -> SummaryConfig:
    """
    Load the summary configuration from a JSON file.

    Args:
        config_path: Path to the JSON file, absolute or relative to the cwd.
            When omitted the defaults are returned.

    Returns:
        The merged configuration

    Raises:
        ConfigurationError: If the file is missing, is not valid JSON, or
            holds invalid values
    """
    if not config_path:
        return SummaryConfig()

    path = Path(config_path)
    if not path.is_absolute():
        path = Path.cwd() / path

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {config_path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {config_path} must hold a JSON object")

    values = {}
    for key, value in raw.items():
        attr = _CONFIG_KEYS.get(key)
        if attr is None:
            logger.warning("Ignoring unknown config key '%s'", key)
            continue
        values[attr] = value

    config = SummaryConfig(**values)
    validate_summary_config(config)

    logger.info("Loaded configuration from %s", path)
    if config.interesting_keywords:
        logger.info("  Keywords: %s", config.interesting_keywords)
    if config.focus_areas:
        logger.info("  Focus areas: %s", ", ".join(config.focus_areas))
    logger.info("  LLM provider: %s, strategy: %s", config.llm_provider, config.strategy)
    return config


def validate_summary_config(config: SummaryConfig) -> None:
    """
    Raises:
        ConfigurationError: If a value is out of range
    """
    if config.output_path and (
        ".." in config.output_path or Path(config.output_path).is_absolute()
    ):
        raise ConfigurationError(
            "outputPath must be a relative subpath (no '..' or absolute paths allowed)"
        )
    if not isinstance(config.focus_areas, list) or not isinstance(
        config.ignored_bot_emails, list
    ):
        raise ConfigurationError("focusAreas and ignoredBotEmails must be lists")
    try:
        StrategyKind(config.strategy)
    except ValueError as e:
        raise ConfigurationError(
            f"Unknown strategy '{config.strategy}', expected one of "
            f"{', '.join(kind.value for kind in StrategyKind)}"
        ) from e


def get_ignored_bot_emails(config: SummaryConfig) -> list[str]:
    """Default bot emails plus the ones configured, lower-cased."""
    return [
        email.lower()
        for email in [*DEFAULT_IGNORED_BOT_EMAILS, *config.ignored_bot_emails]
    ]


def provider_settings_from_env(provider: LLMProvider | str) -> ProviderSettings:
    """
    Build adapter settings for ``provider`` from the environment.

    Raises:
        ConfigurationError: If the provider is unknown or its API key is missing
    """
    try:
        provider = LLMProvider(provider)
    except ValueError as e:
        raise ConfigurationError(f"Unknown LLM provider: {provider}") from e

    model_override = os.getenv(ENV_VARS["MODEL_NAME"])
    if provider is LLMProvider.GEMINI:
        key_var = ENV_VARS["GEMINI_API_KEY"]
        settings = ProviderSettings(
            api_key=os.getenv(key_var, ""),
            model=model_override or DEFAULT_GEMINI_MODEL,
        )
    elif provider is LLMProvider.NEXOS:
        key_var = ENV_VARS["NEXOS_API_KEY"]
        settings = ProviderSettings(
            api_key=os.getenv(key_var, ""),
            model=model_override or DEFAULT_NEXOS_MODEL,
            base_url=DEFAULT_NEXOS_ENDPOINT,
        )
    elif provider is LLMProvider.OPENAI:
        key_var = ENV_VARS["OPENAI_API_KEY"]
        settings = ProviderSettings(
            api_key=os.getenv(key_var, ""),
            model=model_override or DEFAULT_OPENAI_MODEL,
            base_url=os.getenv(ENV_VARS["OPENAI_ENDPOINT"], DEFAULT_OPENAI_ENDPOINT),
        )
    else:
        raise ConfigurationError(f"{provider.value} provider not yet implemented")

    if not settings.api_key:
        raise ConfigurationError(f"{key_var} environment variable not set")
    return settings
