"""
Tests for the GitHub MCP client.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from commitdigest.exceptions import MCPError
from commitdigest.github_client import GitHubMCPClient, detail_from_api

from conftest import commit_hash


def mcp_result(data, is_error=False):
    content = MagicMock()
    content.text = json.dumps(data) if not isinstance(data, str) else data
    result = MagicMock()
    result.content = [content]
    result.isError = is_error
    return result


def api_commit(n, authored, committed=None, files=("a.cc",)):
    return {
        "sha": commit_hash(n),
        "commit": {
            "message": f"Commit {n}\n\nBody.",
            "author": {"name": "Dev", "email": "dev@chromium.org", "date": authored},
            "committer": {"name": "Bot", "email": "bot@chromium.org", "date": committed or authored},
            "tree": {"sha": "t" * 40},
        },
        "parents": [{"sha": commit_hash(n + 1000)}],
        "stats": {"additions": 4, "deletions": 2, "total": 6},
        "files": [
            {"filename": f, "status": "modified", "additions": 2, "deletions": 1, "changes": 3, "patch": "@@"}
            for f in files
        ],
    }


@pytest.fixture
def client():
    github = GitHubMCPClient("chromium/chromium")
    github.mcp_session = AsyncMock()
    return github


@pytest.mark.asyncio
class TestGitHubMCPClient:
    """Test commit listing and detail fetching over a mocked MCP session."""

    async def test_session_required(self):
        with pytest.raises(MCPError, match="not initialized"):
            await GitHubMCPClient().get_commit(commit_hash(1))

    async def test_fetch_commits_for_date(self, client):
        listing = [
            api_commit(1, "2025-06-03T01:00:00Z"),
            api_commit(2, "2025-06-02T20:00:00Z"),
            api_commit(3, "2025-06-01T23:00:00Z", committed="2025-06-02T09:00:00Z"),
            api_commit(4, "2025-06-01T10:00:00Z"),
        ]
        by_sha = {c["sha"]: c for c in listing}

        async def call_tool(name, arguments):
            if name == "list_commits":
                assert arguments["sha"] == "main"
                assert arguments["page"] == 1
                return mcp_result(listing)
            return mcp_result(by_sha[arguments["sha"]])

        client.mcp_session.call_tool.side_effect = call_tool

        records = await client.fetch_commits_for_date("main", "2025-06-02")

        assert [r.commit for r in records] == [commit_hash(2)]
        record = records[0]
        assert record.author.time == "2025-06-02T20:00:00Z"
        assert record.files == ("a.cc",)
        assert record.parents == (commit_hash(1002),)
        assert record.title == "Commit 2"

    async def test_listing_failure_is_wrapped(self, client):
        client.mcp_session.call_tool.side_effect = RuntimeError("pipe closed")
        with pytest.raises(MCPError, match="Error fetching commits"):
            await client.fetch_commits_for_date("main", "2025-06-02")

    async def test_tool_error_result(self, client):
        client.mcp_session.call_tool.return_value = mcp_result("404 Not Found", is_error=True)
        with pytest.raises(MCPError, match="get_commit failed"):
            await client.get_commit(commit_hash(1))

    async def test_fetch_details_aligns_failures(self, client):
        commits = {commit_hash(i): api_commit(i, "2025-06-02T10:00:00Z") for i in range(1, 8)}
        missing = commit_hash(3)

        async def call_tool(name, arguments):
            if arguments["sha"] == missing:
                raise RuntimeError("rate limited")
            return mcp_result(commits[arguments["sha"]])

        client.mcp_session.call_tool.side_effect = call_tool
        identifiers = list(commits)

        with patch("commitdigest.github_client.asyncio.sleep", new=AsyncMock()) as sleep:
            details = await client.fetch_details(identifiers)

        assert len(details) == 7
        assert details[2] is None
        assert [d.commit for d in details if d] == [i for i in identifiers if i != missing]
        # Seven identifiers make two batches with one pause between them
        sleep.assert_awaited_once_with(0.5)

    async def test_detail_conversion(self):
        detail = detail_from_api(api_commit(1, "2025-06-02T10:00:00Z", files=("a.cc", "b.h")))
        assert detail.additions == 4
        assert detail.deletions == 2
        assert detail.files_changed == 2
        assert detail.author == "Dev"
        assert detail.files[0].patch == "@@"


@pytest.mark.asyncio
async def test_missing_token_fails_on_enter():
    with patch.dict("os.environ", {}, clear=True):
        with pytest.raises(MCPError, match="token"):
            async with GitHubMCPClient():
                pass
