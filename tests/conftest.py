"""Shared fixtures for commitdigest tests."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from commitdigest.adapters.base import PlatformAdapter
from commitdigest.config import ProviderSettings
from commitdigest.constants import FETCH_DETAILS_TOOL_NAME
from commitdigest.conversation import ModelResponse, ToolInvocation
from commitdigest.models import ChangeDetail, ChangeRecord, FileChange, Person


def commit_hash(n: int) -> str:
    return f"{n:040x}"


class ScriptedAdapter(PlatformAdapter):
    """Adapter replaying canned responses; records what each call was sent."""

    provider = "scripted"

    def __init__(self, responses):
        super().__init__(
            ProviderSettings(api_key="test", model="test-model", max_attempts=1, retry_delay=0)
        )
        self.responses = list(responses)
        self.sent = []

    async def _send(self, turns, options):
        self.sent.append((turns, options))
        if not self.responses:
            raise AssertionError("ScriptedAdapter ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


def text_response(text: str) -> ModelResponse:
    return ModelResponse(text=text)


def tool_response(*hash_lists, call_prefix: str = "call") -> ModelResponse:
    return ModelResponse(
        text="",
        tool_invocations=tuple(
            ToolInvocation(
                id=f"{call_prefix}_{i}",
                name=FETCH_DETAILS_TOOL_NAME,
                arguments=json.dumps({"commit_hashes": list(hashes)}),
            )
            for i, hashes in enumerate(hash_lists)
        ),
    )


def summary_json(*cited: str, breaking: bool = False) -> str:
    return json.dumps(
        {
            "title": "Chromium Digest: 2025-06-02",
            "overview": "Two relevant commits landed.",
            "categories": [
                {
                    "title": "Blink Engine",
                    "points": [
                        {"text": "Reworked layout caching.", "commits": list(cited), "isBreaking": breaking}
                    ],
                }
            ],
        }
    )


@pytest.fixture
def make_record():
    """Factory building ChangeRecords with deterministic hashes."""

    def make(n: int, message: str | None = None, email: str = "dev@chromium.org", files=("a.cc",)):
        person = Person(name="Dev", email=email, time=f"2025-06-02T{n % 24:02d}:00:00Z")
        return ChangeRecord(
            commit=commit_hash(n),
            author=person,
            committer=person,
            message=message or f"Change number {n}\n\nLonger description.",
            files=tuple(files),
        )

    return make


def make_detail(identifier: str) -> ChangeDetail:
    return ChangeDetail(
        commit=identifier,
        message=f"Details of {identifier[:7]}",
        author="Dev",
        date="2025-06-02T10:00:00Z",
        additions=3,
        deletions=1,
        files=[FileChange("a.cc", "modified", 3, 1, 4, patch="@@ -1 +1 @@\n-a\n+b")],
    )


@pytest.fixture
def fetcher():
    """Detail fetcher mock returning a detail for every identifier."""
    mock = MagicMock()
    mock.fetch_details = AsyncMock(side_effect=lambda ids: [make_detail(i) for i in ids])
    return mock
