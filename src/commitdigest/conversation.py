"""
Conversation state shared by all platform adapters.

A conversation is an append-only sequence of role-tagged turns. Tool turns
answer the invocations carried by the most recent assistant turn, in order,
and every invocation must be answered before the next user or assistant turn.
"""

from dataclasses import dataclass, field
from typing import Any, Literal, Union

from .exceptions import ConversationError
from .summary import StructuredSummary

Role = Literal["user", "assistant", "tool"]


@dataclass(frozen=True)
class ToolInvocation:
    """A model-issued request to run a tool; ``arguments`` is the raw JSON payload."""

    id: str
    name: str
    arguments: str


@dataclass(frozen=True)
class UserTurn:
    content: str
    role: Role = field(default="user", init=False)


@dataclass(frozen=True)
class AssistantTurn:
    content: str
    tool_invocations: tuple[ToolInvocation, ...] = ()
    # Provider-native message, replayed verbatim by adapters that need it
    native: Any = field(default=None, compare=False, repr=False)
    role: Role = field(default="assistant", init=False)


@dataclass(frozen=True)
class ToolTurn:
    content: str
    invocation: ToolInvocation
    role: Role = field(default="tool", init=False)


Turn = Union[UserTurn, AssistantTurn, ToolTurn]


@dataclass(frozen=True)
class CallOptions:
    system_prompt: str | None = None
    enable_tools: bool = False
    request_json: bool = False


@dataclass(frozen=True)
class ModelResponse:
    """Normalized result of one remote model call."""

    text: str
    tool_invocations: tuple[ToolInvocation, ...] = ()
    usage: dict[str, int] | None = None
    native: Any = field(default=None, compare=False, repr=False)
    summary: StructuredSummary | None = None

    @property
    def has_tool_invocations(self) -> bool:
        return bool(self.tool_invocations)


class ConversationState:
    """Ordered turns of one conversation, owned by a single adapter."""

    def __init__(self) -> None:
        self._turns: list[Turn] = []

    def __len__(self) -> int:
        return len(self._turns)

    def snapshot(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def clear(self) -> None:
        self._turns = []

    def pending_invocations(self) -> list[ToolInvocation]:
        """Invocations of the latest assistant turn not answered yet."""
        answered: set[str] = set()
        for turn in reversed(self._turns):
            if isinstance(turn, ToolTurn):
                answered.add(turn.invocation.id)
            elif isinstance(turn, AssistantTurn):
                return [
                    invocation
                    for invocation in turn.tool_invocations
                    if invocation.id not in answered
                ]
            else:
                return []
        return []

    def append_user(self, content: str) -> UserTurn:
        self._ensure_no_pending("user")
        turn = UserTurn(content)
        self._turns.append(turn)
        return turn

    def append_assistant(
        self,
        content: str,
        tool_invocations: tuple[ToolInvocation, ...] | list[ToolInvocation] = (),
        native: Any = None,
    ) -> AssistantTurn:
        self._ensure_no_pending("assistant")
        turn = AssistantTurn(content, tuple(tool_invocations), native=native)
        self._turns.append(turn)
        return turn

    def append_tool(self, content: str, invocation_id: str | None = None) -> ToolTurn:
        """
        Answer a pending invocation.

        Without ``invocation_id`` the oldest pending invocation is answered.

        Raises:
            ConversationError: If no invocation is pending or the id is unknown
        """
        pending = self.pending_invocations()
        if not pending:
            raise ConversationError(
                "Tool turn appended without a pending tool invocation"
            )
        if invocation_id is None:
            invocation = pending[0]
        else:
            matches = [p for p in pending if p.id == invocation_id]
            if not matches:
                raise ConversationError(
                    f"No pending tool invocation with id '{invocation_id}'"
                )
            invocation = matches[0]
        turn = ToolTurn(content, invocation)
        self._turns.append(turn)
        return turn

    def _ensure_no_pending(self, role: str) -> None:
        pending = self.pending_invocations()
        if pending:
            ids = ", ".join(p.id for p in pending)
            raise ConversationError(
                f"Cannot append a {role} turn while tool invocations are pending: {ids}"
            )
