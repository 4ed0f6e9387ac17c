"""
OpenAI Chat Completions adapter.

Supports the OpenAI API and compatible endpoints (Nexos.ai, vLLM, etc.)
through streaming responses.
"""

import logging
from typing import Any

import openai

from ..config import ProviderSettings
from ..constants import FETCH_DETAILS_TOOL_NAME
from ..conversation import (
    AssistantTurn,
    CallOptions,
    ModelResponse,
    ToolInvocation,
    ToolTurn,
    Turn,
    UserTurn,
)
from ..tools import FETCH_DETAILS_DESCRIPTION, FETCH_DETAILS_PARAMETERS
from .base import PlatformAdapter

logger = logging.getLogger(__name__)

FETCH_DETAILS_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": FETCH_DETAILS_TOOL_NAME,
        "description": FETCH_DETAILS_DESCRIPTION,
        "parameters": FETCH_DETAILS_PARAMETERS,
    },
}


class ToolCallAccumulator:
    """
    Reassembles streamed tool-call fragments.

    Fragments are keyed by their stream index; ids and names arrive once,
    argument text arrives in pieces and is concatenated in order.
    """

    def __init__(self) -> None:
        self._calls: dict[int, dict[str, str]] = {}

    def add(self, fragment: Any) -> None:
        index = getattr(fragment, "index", None) or 0
        entry = self._calls.setdefault(index, {"id": "", "name": "", "arguments": ""})
        if getattr(fragment, "id", None):
            entry["id"] = fragment.id
        function = getattr(fragment, "function", None)
        if function is not None:
            if function.name:
                entry["name"] = function.name
            if function.arguments:
                entry["arguments"] += function.arguments

    def invocations(self) -> tuple[ToolInvocation, ...]:
        """Completed invocations in index order; fragments lacking an id or name are dropped."""
        completed = []
        for index in sorted(self._calls):
            entry = self._calls[index]
            if not entry["id"] or not entry["name"]:
                logger.warning("Dropping incomplete streamed tool call at index %d", index)
                continue
            completed.append(
                ToolInvocation(
                    id=entry["id"],
                    name=entry["name"],
                    arguments=entry["arguments"] or "{}",
                )
            )
        return tuple(completed)


class OpenAIChatAdapter(PlatformAdapter):
    """
    Adapter for OpenAI-style Chat Completions endpoints.

    Responses are always streamed; text and tool-call fragments are collected
    until the stream ends and only then turned into a response.
    """

    provider = "openai"

    def __init__(
        self, settings: ProviderSettings, client: openai.AsyncOpenAI | None = None
    ):
        super().__init__(settings)
        # Retries and timeouts are handled by PlatformAdapter.call
        self.client = client or openai.AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            max_retries=0,
            timeout=settings.timeout,
        )

    def is_retryable(self, error: BaseException) -> bool:
        if isinstance(
            error,
            (
                openai.RateLimitError,
                openai.APITimeoutError,
                openai.APIConnectionError,
                openai.InternalServerError,
            ),
        ):
            return True
        return super().is_retryable(error)

    def build_payload(
        self, turns: tuple[Turn, ...], options: CallOptions
    ) -> dict[str, Any]:
        """Build the chat completions request payload."""
        payload: dict[str, Any] = {
            "model": self.settings.model,
            "messages": self.to_messages(turns, options.system_prompt),
            "temperature": self.settings.temperature,
            "stream": True,
        }
        if options.enable_tools:
            payload["tools"] = [FETCH_DETAILS_TOOL]
        if options.request_json:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def _send(
        self, turns: tuple[Turn, ...], options: CallOptions
    ) -> ModelResponse:
        stream = await self.client.chat.completions.create(
            **self.build_payload(turns, options)
        )

        text_parts: list[str] = []
        accumulator = ToolCallAccumulator()
        usage = None
        async for chunk in stream:
            if getattr(chunk, "usage", None):
                usage = {
                    "prompt_tokens": chunk.usage.prompt_tokens,
                    "completion_tokens": chunk.usage.completion_tokens,
                    "total_tokens": chunk.usage.total_tokens,
                }
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            if delta is None:
                continue
            if delta.content:
                text_parts.append(delta.content)
            for fragment in delta.tool_calls or []:
                accumulator.add(fragment)

        return ModelResponse(
            text="".join(text_parts),
            tool_invocations=accumulator.invocations(),
            usage=usage,
        )

    @staticmethod
    def to_messages(
        turns: tuple[Turn, ...], system_prompt: str | None = None
    ) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        for turn in turns:
            if isinstance(turn, UserTurn):
                messages.append({"role": "user", "content": turn.content})
            elif isinstance(turn, AssistantTurn):
                message: dict[str, Any] = {"role": "assistant", "content": turn.content}
                if turn.tool_invocations:
                    message["tool_calls"] = [
                        {
                            "id": invocation.id,
                            "type": "function",
                            "function": {
                                "name": invocation.name,
                                "arguments": invocation.arguments,
                            },
                        }
                        for invocation in turn.tool_invocations
                    ]
                messages.append(message)
            elif isinstance(turn, ToolTurn):
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": turn.invocation.id,
                        "content": turn.content,
                    }
                )
        return messages
