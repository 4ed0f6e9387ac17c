"""
Platform adapters and the provider -> adapter mapping.
"""

from typing import Any

from ..config import LLMProvider, ProviderSettings
from ..exceptions import ConfigurationError
from .base import PlatformAdapter
from .gemini import GeminiAdapter
from .openai_chat import OpenAIChatAdapter, ToolCallAccumulator

ADAPTERS: dict[LLMProvider, type[PlatformAdapter]] = {
    LLMProvider.GEMINI: GeminiAdapter,
    LLMProvider.NEXOS: OpenAIChatAdapter,
    LLMProvider.OPENAI: OpenAIChatAdapter,
}


def create_adapter(
    provider: LLMProvider | str, settings: ProviderSettings, client: Any = None
) -> PlatformAdapter:
    """
    Instantiate the adapter for ``provider``.

    Args:
        provider: Provider name or enum member
        settings: Connection and retry settings
        client: Optional pre-built SDK client shared across adapters

    Raises:
        ConfigurationError: If the provider is unknown or not implemented
    """
    try:
        provider = LLMProvider(provider)
    except ValueError as e:
        raise ConfigurationError(f"Unknown LLM provider: {provider}") from e

    adapter_cls = ADAPTERS.get(provider)
    if adapter_cls is None:
        raise ConfigurationError(f"{provider.value} provider not yet implemented")

    adapter = adapter_cls(settings, client=client)
    adapter.provider = provider.value
    return adapter


__all__ = [
    "ADAPTERS",
    "GeminiAdapter",
    "OpenAIChatAdapter",
    "PlatformAdapter",
    "ToolCallAccumulator",
    "create_adapter",
]
