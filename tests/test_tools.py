"""
Tests for the fetch-details tool executor.
"""

import json

import pytest

from commitdigest.conversation import ToolInvocation
from commitdigest.exceptions import ToolExecutionError
from commitdigest.models import ChangeDetail, FileChange
from commitdigest.tools import ToolExecutor, format_detail, parse_commit_hashes

from conftest import commit_hash, make_detail


def invocation(arguments, name="get_commit_details", call_id="call_0"):
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return ToolInvocation(id=call_id, name=name, arguments=arguments)


def payload_of(result: str) -> dict:
    header, _, body = result.partition("\n")
    assert header == "Tool call result for get_commit_details:"
    return json.loads(body)


class TestParseCommitHashes:
    def test_duplicates_are_removed(self):
        assert parse_commit_hashes('{"commit_hashes": ["a", "b", "a", " "]}') == ["a", "b"]

    @pytest.mark.parametrize(
        "arguments",
        ["not json", '{"commit_hashes": "abc"}', '{"commit_hashes": []}', "[]", '{"other": 1}'],
    )
    def test_invalid_arguments(self, arguments):
        with pytest.raises(ToolExecutionError):
            parse_commit_hashes(arguments)


class TestFormatDetail:
    def test_patches_only_for_small_files(self):
        detail = ChangeDetail(
            commit=commit_hash(1),
            message="msg",
            author="Dev",
            date="2025-06-02",
            additions=130,
            deletions=10,
            files=[
                FileChange("small.cc", "modified", 3, 1, 4, patch="@@ small"),
                FileChange("big.cc", "modified", 100, 9, 109, patch="@@ big"),
            ]
            + [FileChange(f"f{i}.cc", "added", 1, 0, 1) for i in range(12)],
        )
        data = format_detail(detail)
        assert data["files_changed"] == 14
        assert len(data["top_files"]) == 10
        assert data["top_files"][0]["patch"] == "@@ small"
        assert "patch" not in data["top_files"][1]


@pytest.mark.asyncio
class TestToolExecutor:
    """Test tool invocation handling."""

    async def test_successful_fetch(self, fetcher):
        executor = ToolExecutor(fetcher)
        results = await executor.execute([invocation({"commit_hashes": [commit_hash(1)]})])

        assert len(results) == 1
        data = payload_of(results[0])
        assert data["commits"][0]["commit"] == commit_hash(1)
        assert "unavailable" not in data

    async def test_ids_beyond_the_limit_are_skipped(self, fetcher):
        hashes = [commit_hash(i) for i in range(12)]
        results = await ToolExecutor(fetcher).execute([invocation({"commit_hashes": hashes})])

        fetcher.fetch_details.assert_awaited_once_with(hashes[:10])
        data = payload_of(results[0])
        assert data["skipped"] == hashes[10:]
        assert "note" in data

    async def test_partial_failures_are_reported(self, fetcher):
        fetcher.fetch_details.side_effect = lambda ids: [make_detail(ids[0]), None]
        results = await ToolExecutor(fetcher).execute(
            [invocation({"commit_hashes": [commit_hash(1), commit_hash(2)]})]
        )

        data = payload_of(results[0])
        assert [c["commit"] for c in data["commits"]] == [commit_hash(1)]
        assert data["unavailable"] == [commit_hash(2)]

    async def test_total_failure_becomes_error_text(self, fetcher):
        fetcher.fetch_details.side_effect = lambda ids: [None for _ in ids]
        results = await ToolExecutor(fetcher).execute(
            [invocation({"commit_hashes": [commit_hash(1)]})]
        )
        assert results[0].startswith("Tool call error for get_commit_details:")

    async def test_errors_do_not_affect_other_invocations(self, fetcher):
        results = await ToolExecutor(fetcher).execute(
            [
                invocation("not json", call_id="bad"),
                invocation({"commit_hashes": [commit_hash(3)]}, name="delete_repo", call_id="unknown"),
                invocation({"commit_hashes": [commit_hash(3)]}, call_id="good"),
            ]
        )

        assert len(results) == 3
        assert results[0].startswith("Tool call error")
        assert "Unknown tool 'delete_repo'" in results[1]
        assert payload_of(results[2])["commits"][0]["commit"] == commit_hash(3)

    async def test_fetcher_exception_is_contained(self, fetcher):
        fetcher.fetch_details.side_effect = RuntimeError("connection reset")
        results = await ToolExecutor(fetcher).execute(
            [invocation({"commit_hashes": [commit_hash(1)]})]
        )
        assert "connection reset" in results[0]
