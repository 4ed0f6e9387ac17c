"""
Gemini adapter: native function calling and schema-constrained JSON output.
"""

import json
import logging
import uuid

from google import genai
from google.genai import errors, types

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
from ..tools import COMMIT_HASHES_DESCRIPTION, FETCH_DETAILS_DESCRIPTION
from .base import PlatformAdapter

logger = logging.getLogger(__name__)

FETCH_DETAILS_DECLARATION = types.FunctionDeclaration(
    name=FETCH_DETAILS_TOOL_NAME,
    description=FETCH_DETAILS_DESCRIPTION,
    parameters=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "commit_hashes": types.Schema(
                type=types.Type.ARRAY,
                description=COMMIT_HASHES_DESCRIPTION,
                items=types.Schema(type=types.Type.STRING),
            ),
        },
        required=["commit_hashes"],
    ),
)

SUMMARY_RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "title": types.Schema(type=types.Type.STRING),
        "overview": types.Schema(type=types.Type.STRING),
        "categories": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "title": types.Schema(type=types.Type.STRING),
                    "points": types.Schema(
                        type=types.Type.ARRAY,
                        items=types.Schema(
                            type=types.Type.OBJECT,
                            properties={
                                "text": types.Schema(type=types.Type.STRING),
                                "commits": types.Schema(
                                    type=types.Type.ARRAY,
                                    items=types.Schema(type=types.Type.STRING),
                                ),
                                "isBreaking": types.Schema(type=types.Type.BOOLEAN),
                            },
                            required=["text", "commits"],
                        ),
                    ),
                },
                required=["title", "points"],
            ),
        ),
    },
    required=["title", "overview", "categories"],
)


class GeminiAdapter(PlatformAdapter):
    """
    Adapter for the Google Gemini API.

    Tool results travel back as function-response parts and assistant turns
    are replayed from the model's own content, so function-call parts (and
    any thought signatures attached to them) survive the round trip.
    """

    provider = "gemini"

    def __init__(self, settings: ProviderSettings, client: genai.Client | None = None):
        super().__init__(settings)
        self.client = client or genai.Client(api_key=settings.api_key)

    def is_retryable(self, error: BaseException) -> bool:
        if isinstance(error, errors.ServerError):
            return True
        return super().is_retryable(error)

    async def _send(
        self, turns: tuple[Turn, ...], options: CallOptions
    ) -> ModelResponse:
        config_kwargs = {
            "system_instruction": options.system_prompt,
            "temperature": self.settings.temperature,
        }
        if options.enable_tools:
            config_kwargs["tools"] = [
                types.Tool(function_declarations=[FETCH_DETAILS_DECLARATION])
            ]
            config_kwargs["automatic_function_calling"] = (
                types.AutomaticFunctionCallingConfig(disable=True)
            )
        if options.request_json:
            config_kwargs["response_mime_type"] = "application/json"
            config_kwargs["response_schema"] = SUMMARY_RESPONSE_SCHEMA

        response = await self.client.aio.models.generate_content(
            model=self.settings.model,
            contents=self.to_contents(turns),
            config=types.GenerateContentConfig(**config_kwargs),
        )

        content = None
        if response.candidates and response.candidates[0].content:
            content = response.candidates[0].content

        text = ""
        if content and content.parts:
            text = "".join(
                part.text for part in content.parts if part.text and not part.thought
            )

        invocations = tuple(
            ToolInvocation(
                id=call.id or f"call_{uuid.uuid4().hex[:12]}",
                name=call.name or "",
                arguments=json.dumps(call.args or {}),
            )
            for call in response.function_calls or []
        )

        usage = None
        if response.usage_metadata:
            usage = {
                "prompt_tokens": response.usage_metadata.prompt_token_count or 0,
                "completion_tokens": response.usage_metadata.candidates_token_count or 0,
                "total_tokens": response.usage_metadata.total_token_count or 0,
            }

        return ModelResponse(
            text=text, tool_invocations=invocations, usage=usage, native=content
        )

    @staticmethod
    def to_contents(turns: tuple[Turn, ...]) -> list[types.Content]:
        """Translate turns to Gemini contents; consecutive tool turns share one content."""
        contents: list[types.Content] = []
        for turn in turns:
            if isinstance(turn, UserTurn):
                contents.append(
                    types.Content(role="user", parts=[types.Part.from_text(text=turn.content)])
                )
            elif isinstance(turn, AssistantTurn):
                # Gemini rejects model contents without parts
                if isinstance(turn.native, types.Content) and turn.native.parts:
                    contents.append(turn.native)
                    continue
                parts = []
                if turn.content:
                    parts.append(types.Part.from_text(text=turn.content))
                for invocation in turn.tool_invocations:
                    parts.append(
                        types.Part.from_function_call(
                            name=invocation.name, args=json.loads(invocation.arguments or "{}")
                        )
                    )
                if parts:
                    contents.append(types.Content(role="model", parts=parts))
            elif isinstance(turn, ToolTurn):
                part = types.Part.from_function_response(
                    name=turn.invocation.name, response={"output": turn.content}
                )
                previous = contents[-1] if contents else None
                if (
                    previous is not None
                    and previous.role == "user"
                    and previous.parts
                    and previous.parts[0].function_response is not None
                ):
                    previous.parts.append(part)
                else:
                    contents.append(types.Content(role="user", parts=[part]))
        return contents
