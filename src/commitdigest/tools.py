"""
The fetch-details tool offered to the model, and its executor.
"""

import json
import logging
from typing import Any, Protocol

from .constants import (
    FETCH_DETAILS_TOOL_NAME,
    MAX_IDS_PER_INVOCATION,
    MAX_TOOL_TOP_FILES,
    PATCH_CHANGE_LIMIT,
)
from .conversation import ToolInvocation
from .exceptions import ToolExecutionError
from .models import ChangeDetail

logger = logging.getLogger(__name__)

FETCH_DETAILS_DESCRIPTION = (
    "Fetches detailed information about specific commits including file "
    "changes, diffs, and statistics. Use this when you need more context about "
    "what actually changed in a commit beyond just the commit message. You can "
    "request details for multiple commits at once."
)

COMMIT_HASHES_DESCRIPTION = (
    "An array of commit hashes (full SHA) to fetch details for. You can request "
    f"up to {MAX_IDS_PER_INVOCATION} commits at once."
)

# JSON schema of the tool arguments, shared by the chat-completions adapters
FETCH_DETAILS_PARAMETERS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "commit_hashes": {
            "type": "array",
            "description": COMMIT_HASHES_DESCRIPTION,
            "items": {"type": "string"},
        },
    },
    "required": ["commit_hashes"],
}


class DetailFetcher(Protocol):
    """Anything that can fetch change details for a batch of commit hashes."""

    async def fetch_details(
        self, identifiers: list[str]
    ) -> list[ChangeDetail | None]:
        """Return one entry per identifier, ``None`` where the fetch failed."""
        ...


def parse_commit_hashes(arguments: str) -> list[str]:
    """
    Read the commit hash list out of a raw tool argument payload.

    Raises:
        ToolExecutionError: If the payload is not the expected JSON object
    """
    try:
        args = json.loads(arguments or "{}")
    except json.JSONDecodeError as e:
        raise ToolExecutionError(f"Invalid tool arguments: {e}") from e

    hashes = args.get("commit_hashes") if isinstance(args, dict) else None
    if not isinstance(hashes, list) or not all(isinstance(h, str) for h in hashes):
        raise ToolExecutionError("'commit_hashes' must be an array of strings")

    unique: dict[str, None] = {}
    for commit_hash in hashes:
        if commit_hash.strip():
            unique.setdefault(commit_hash.strip(), None)
    if not unique:
        raise ToolExecutionError("'commit_hashes' is empty")
    return list(unique)


def format_detail(detail: ChangeDetail) -> dict[str, Any]:
    """Serializable view of one detail; patches only for small file changes."""
    return {
        "commit": detail.commit,
        "message": detail.message,
        "author": detail.author,
        "date": detail.date,
        "files_changed": detail.files_changed,
        "additions": detail.additions,
        "deletions": detail.deletions,
        "top_files": [
            {
                "filename": f.filename,
                "status": f.status,
                "additions": f.additions,
                "deletions": f.deletions,
                **(
                    {"patch": f.patch}
                    if f.patch and f.additions + f.deletions < PATCH_CHANGE_LIMIT
                    else {}
                ),
            }
            for f in detail.files[:MAX_TOOL_TOP_FILES]
        ],
    }


class ToolExecutor:
    """Runs model tool invocations against a detail fetcher."""

    def __init__(self, fetcher: DetailFetcher):
        self.fetcher = fetcher

    async def execute(self, invocations: list[ToolInvocation] | tuple[ToolInvocation, ...]) -> list[str]:
        """
        Execute invocations in order, one text block per invocation.

        A failing invocation yields an error block instead of raising, so the
        model can carry on without that detail.
        """
        responses = []
        for invocation in invocations:
            try:
                responses.append(await self._execute_one(invocation))
            except ToolExecutionError as e:
                logger.error("Tool call %s failed: %s", invocation.id, e)
                responses.append(f"Tool call error for {invocation.name}: {e}")
        return responses

    async def _execute_one(self, invocation: ToolInvocation) -> str:
        if invocation.name != FETCH_DETAILS_TOOL_NAME:
            raise ToolExecutionError(f"Unknown tool '{invocation.name}'")

        hashes = parse_commit_hashes(invocation.arguments)
        skipped = hashes[MAX_IDS_PER_INVOCATION:]
        hashes = hashes[:MAX_IDS_PER_INVOCATION]
        if skipped:
            logger.warning(
                "Tool call requested %d commits, only the first %d are fetched",
                len(hashes) + len(skipped),
                MAX_IDS_PER_INVOCATION,
            )

        logger.info("Fetching details for %d commit(s)...", len(hashes))
        try:
            details = await self.fetcher.fetch_details(hashes)
        except Exception as e:
            raise ToolExecutionError(f"Failed to fetch commit details: {e}") from e

        fetched = [d for d in details if d is not None]
        if not fetched:
            raise ToolExecutionError(
                f"No details could be fetched for: {', '.join(hashes)}"
            )
        logger.info("Successfully fetched %d commit detail(s)", len(fetched))

        payload: dict[str, Any] = {"commits": [format_detail(d) for d in fetched]}
        unavailable = [h for h, d in zip(hashes, details) if d is None]
        if unavailable:
            payload["unavailable"] = unavailable
        if skipped:
            payload["skipped"] = skipped
            payload["note"] = (
                f"At most {MAX_IDS_PER_INVOCATION} commits are fetched per call; "
                "request the skipped ones in another call if needed."
            )
        return f"Tool call result for {invocation.name}:\n{json.dumps(payload, indent=2)}"
