"""
commitdigest - AI summaries of daily repository changes

Turns a day's commits into a structured digest of categorized, cited points.
A model investigates the commits, asking for per-commit details through a
tool when the message alone is not enough, and daily digests can be rolled
up into weekly ones.
"""

__version__ = "0.1.0"

from .adapters import GeminiAdapter, OpenAIChatAdapter, PlatformAdapter, create_adapter
from .config import (
    LLMProvider,
    ProviderSettings,
    StrategyKind,
    StrategySettings,
    get_optional_env_var,
    get_required_env_var,
    load_environment_variables,
    load_summary_config,
    provider_settings_from_env,
)
from .engine import DigestEngine
from .exceptions import (
    ConfigurationError,
    ConversationError,
    DigestError,
    MalformedResponseError,
    MCPError,
    ProviderError,
    RetryExhaustedError,
    ToolExecutionError,
)
from .github_client import GitHubMCPClient
from .models import ChangeDetail, ChangeRecord, DailySummary, FileChange, Person, SummaryConfig
from .summary import Category, Point, StructuredSummary, find_unknown_citations

__all__ = [
    "Category",
    "ChangeDetail",
    "ChangeRecord",
    "ConfigurationError",
    "ConversationError",
    "DailySummary",
    "DigestEngine",
    "DigestError",
    "FileChange",
    "GeminiAdapter",
    "GitHubMCPClient",
    "LLMProvider",
    "MCPError",
    "MalformedResponseError",
    "OpenAIChatAdapter",
    "Person",
    "PlatformAdapter",
    "Point",
    "ProviderError",
    "ProviderSettings",
    "RetryExhaustedError",
    "StrategyKind",
    "StrategySettings",
    "StructuredSummary",
    "SummaryConfig",
    "ToolExecutionError",
    "__version__",
    "create_adapter",
    "find_unknown_citations",
    "get_optional_env_var",
    "get_required_env_var",
    "load_environment_variables",
    "load_summary_config",
    "provider_settings_from_env",
]
