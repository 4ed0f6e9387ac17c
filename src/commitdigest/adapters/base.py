"""
Platform adapter contract shared by every LLM backend.
"""

import asyncio
import dataclasses
import logging
from abc import ABC, abstractmethod
from typing import Any

from ..config import ProviderSettings
from ..conversation import (
    CallOptions,
    ConversationState,
    ModelResponse,
    Role,
    ToolInvocation,
    Turn,
)
from ..retry import is_rate_limit_error, with_retry
from ..summary import StructuredSummary, parse_structured_summary

logger = logging.getLogger(__name__)


class PlatformAdapter(ABC):
    """
    One LLM backend behind a provider-neutral conversation contract.

    The adapter owns its conversation: callers append turns, ``call`` sends
    the accumulated turns to the remote model and ``reset`` starts over.
    Subclasses only translate turns to and from the provider's wire format
    in ``_send``.
    """

    provider = "base"

    def __init__(self, settings: ProviderSettings):
        self.settings = settings
        self.conversation = ConversationState()

    def append(
        self,
        role: Role,
        content: str,
        tool_invocations: tuple[ToolInvocation, ...] | list[ToolInvocation] = (),
        invocation_id: str | None = None,
        native: Any = None,
    ) -> Turn:
        """
        Append one turn to the conversation.

        Args:
            role: 'user', 'assistant' or 'tool'
            content: Text of the turn
            tool_invocations: Invocations carried by an assistant turn
            invocation_id: Invocation answered by a tool turn; defaults to the
                oldest pending one
            native: Provider-native assistant message to replay verbatim

        Raises:
            ConversationError: If the turn breaks tool invocation ordering
            ValueError: If the role is unknown
        """
        if role == "user":
            return self.conversation.append_user(content)
        if role == "assistant":
            return self.conversation.append_assistant(content, tool_invocations, native)
        if role == "tool":
            return self.conversation.append_tool(content, invocation_id)
        raise ValueError(f"Unknown conversation role: {role}")

    def append_response(self, response: ModelResponse) -> Turn:
        """Record a model response as the next assistant turn."""
        return self.conversation.append_assistant(
            response.text, response.tool_invocations, response.native
        )

    def snapshot(self) -> tuple[Turn, ...]:
        return self.conversation.snapshot()

    def reset(self) -> None:
        self.conversation.clear()

    def is_retryable(self, error: BaseException) -> bool:
        return is_rate_limit_error(error)

    async def call(
        self,
        system_prompt: str | None = None,
        enable_tools: bool = False,
        request_json: bool = False,
    ) -> ModelResponse:
        """
        Send the accumulated conversation to the remote model.

        Each attempt is bounded by ``settings.timeout``; timeouts and rate
        limits are retried, the conversation is left untouched. The response
        is not appended to the conversation.

        Args:
            system_prompt: Optional system directive
            enable_tools: Offer the fetch-details tool to the model
            request_json: Constrain the answer to the summary JSON shape

        Returns:
            The normalized response; ``summary`` is set in JSON mode

        Raises:
            ProviderError: If the call fails for a non-retryable reason
            RetryExhaustedError: If every attempt failed
            MalformedResponseError: If JSON mode text is not a valid summary
        """
        options = CallOptions(
            system_prompt=system_prompt,
            enable_tools=enable_tools,
            request_json=request_json,
        )
        response = await self._exchange(options)
        if request_json:
            summary = parse_structured_summary(response.text)
            response = dataclasses.replace(response, summary=summary)
        return response

    async def request_summary(self, system_prompt: str | None = None) -> StructuredSummary:
        """
        Ask for the final structured summary in JSON mode, without tools.

        Raises:
            MalformedResponseError: If the answer is not a valid summary
        """
        response = await self._exchange(
            CallOptions(system_prompt=system_prompt, request_json=True)
        )
        return parse_structured_summary(response.text)

    async def _exchange(self, options: CallOptions) -> ModelResponse:
        turns = self.conversation.snapshot()

        async def attempt() -> ModelResponse:
            return await asyncio.wait_for(
                self._send(turns, options), timeout=self.settings.timeout
            )

        response = await with_retry(
            attempt,
            max_attempts=self.settings.max_attempts,
            base_delay=self.settings.retry_delay,
            is_retryable=self.is_retryable,
            linear=self.settings.linear_backoff,
            jitter=self.settings.jitter,
            operation=f"{self.provider} call",
        )

        if response.usage:
            logger.info(
                "Tokens: %s prompt, %s completion, %s total",
                response.usage.get("prompt_tokens"),
                response.usage.get("completion_tokens"),
                response.usage.get("total_tokens"),
            )
        return response

    @abstractmethod
    async def _send(
        self, turns: tuple[Turn, ...], options: CallOptions
    ) -> ModelResponse:
        """Perform one remote call for ``turns``; no retries."""
        ...
