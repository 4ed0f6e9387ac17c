"""
GitHub client module for MCP operations.

Lists a day's commits and fetches per-commit details through the GitHub MCP
server; the client doubles as the detail fetcher behind the model's tool.
"""

import asyncio
import json
import logging
import os
from typing import Any, cast

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from .constants import (
    COMMITS_PER_PAGE,
    DEFAULT_REPOSITORY,
    DETAIL_BATCH_DELAY,
    DETAIL_BATCH_SIZE,
    ENV_VARS,
    MAX_COMMIT_PAGES,
    MAX_FILES_PER_RECORD,
)
from .exceptions import MCPError
from .models import ChangeDetail, ChangeRecord, FileChange, Person
from .utils import validate_repository_format

logger = logging.getLogger(__name__)


def _person(raw: dict[str, Any] | None) -> Person:
    raw = raw or {}
    return Person(
        name=raw.get("name") or "",
        email=raw.get("email") or "",
        time=raw.get("date") or "",
    )


def record_from_api(data: dict[str, Any], files: list[str] | None = None) -> ChangeRecord:
    """Convert a GitHub commit object into a ChangeRecord."""
    commit = data.get("commit") or {}
    tree = commit.get("tree") or {}
    return ChangeRecord(
        commit=str(data["sha"]),
        author=_person(commit.get("author")),
        committer=_person(commit.get("committer")),
        message=commit.get("message") or "",
        files=tuple((files or [])[:MAX_FILES_PER_RECORD]),
        parents=tuple(str(p["sha"]) for p in data.get("parents") or [] if "sha" in p),
        tree=tree.get("sha"),
    )


def detail_from_api(data: dict[str, Any]) -> ChangeDetail:
    """Convert a GitHub ``get_commit`` payload into a ChangeDetail."""
    commit = data.get("commit") or {}
    author = commit.get("author") or {}
    stats = data.get("stats") or {}
    files = [
        FileChange(
            filename=f.get("filename", ""),
            status=f.get("status", ""),
            additions=int(f.get("additions") or 0),
            deletions=int(f.get("deletions") or 0),
            changes=int(f.get("changes") or 0),
            patch=f.get("patch"),
        )
        for f in data.get("files") or []
    ]
    return ChangeDetail(
        commit=str(data["sha"]),
        message=commit.get("message") or "",
        author=author.get("name") or "",
        date=author.get("date") or "",
        additions=int(stats.get("additions") or sum(f.additions for f in files)),
        deletions=int(stats.get("deletions") or sum(f.deletions for f in files)),
        files=files,
    )


class GitHubMCPClient:
    """GitHub MCP client bound to one repository."""

    def __init__(
        self,
        repository: str = DEFAULT_REPOSITORY,
        github_token: str | None = None,
        quiet: bool = False,
    ):
        self.owner, self.repo = validate_repository_format(repository)
        self.github_token = github_token
        self.quiet = quiet
        self.mcp_client: Any | None = None
        self.mcp_session: ClientSession | None = None

    async def __aenter__(self) -> "GitHubMCPClient":
        """Initialize MCP client and session."""
        github_token = self.github_token or os.getenv(ENV_VARS["GITHUB_TOKEN"])
        if not github_token:
            raise MCPError("GitHub token not found in environment variables")

        env_vars = {**os.environ, ENV_VARS["GITHUB_TOKEN"]: github_token}

        if self.quiet:
            env_vars.update(
                {
                    ENV_VARS["MCP_LOG_LEVEL"]: "ERROR",
                    ENV_VARS["RUST_LOG"]: "error",
                }
            )

        # Always suppress MCP server startup messages by wrapping the command
        if os.name == "posix":
            command = "sh"
            args = ["-c", "github-mcp-server stdio --toolsets repos 2>/dev/null"]
        else:
            command = "cmd"
            args = ["/c", "github-mcp-server stdio --toolsets repos 2>nul"]

        server_params = StdioServerParameters(
            command=command,
            args=args,
            env=env_vars,
        )

        self.mcp_client = stdio_client(server_params)
        read_stream, write_stream = await self.mcp_client.__aenter__()
        self.mcp_session = ClientSession(read_stream, write_stream)
        await self.mcp_session.__aenter__()
        await self.mcp_session.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Clean up MCP client and session."""
        if self.mcp_session:
            try:
                await self.mcp_session.__aexit__(exc_type, exc_val, exc_tb)
            except Exception as e:
                logger.warning("Error closing MCP session: %s", e)

        if self.mcp_client:
            try:
                await self.mcp_client.__aexit__(exc_type, exc_val, exc_tb)
            except Exception as e:
                logger.warning("Error closing MCP client: %s", e)

        # Don't suppress any original exceptions
        return False

    async def _call_json(self, tool: str, arguments: dict[str, Any]) -> Any:
        """Call an MCP tool and decode the JSON text of its first content item."""
        if not self.mcp_session:
            raise MCPError("MCP session not initialized")

        result = await self.mcp_session.call_tool(tool, arguments)
        if getattr(result, "isError", False):
            message = result.content[0].text if result.content else "unknown error"
            raise MCPError(f"{tool} failed: {message}")
        if hasattr(result, "content") and result.content:
            first_content = result.content[0]
            if hasattr(first_content, "text"):
                return json.loads(first_content.text)
        return None

    async def get_commit(self, sha: str) -> dict[str, Any]:
        """Get one commit including its file list."""
        try:
            data = await self._call_json(
                "get_commit",
                {"owner": self.owner, "repo": self.repo, "sha": sha},
            )
        except MCPError:
            raise
        except Exception as e:
            raise MCPError(f"Error fetching commit info for {sha}: {e}") from e

        if not isinstance(data, dict) or "sha" not in data:
            raise MCPError(f"Unexpected get_commit payload for {sha}")
        return cast(dict[str, Any], data)

    async def fetch_commit_detail(self, sha: str) -> ChangeDetail:
        return detail_from_api(await self.get_commit(sha))

    async def fetch_details(self, identifiers: list[str]) -> list[ChangeDetail | None]:
        """
        Fetch details for several commits.

        Commits are fetched in concurrent batches with a short pause between
        batches. The result is aligned with ``identifiers``; a commit that
        could not be fetched is ``None``.
        """
        details: list[ChangeDetail | None] = []
        for start in range(0, len(identifiers), DETAIL_BATCH_SIZE):
            if start:
                await asyncio.sleep(DETAIL_BATCH_DELAY)
            batch = identifiers[start : start + DETAIL_BATCH_SIZE]
            results = await asyncio.gather(
                *(self.fetch_commit_detail(sha) for sha in batch),
                return_exceptions=True,
            )
            for sha, result in zip(batch, results):
                if isinstance(result, BaseException):
                    logger.warning("Failed to fetch details for %s: %s", sha, result)
                    details.append(None)
                else:
                    details.append(result)
        return details

    async def fetch_commits_for_date(self, branch: str, date: str) -> list[ChangeRecord]:
        """
        List the commits of ``branch`` authored on ``date`` (YYYY-MM-DD).

        Returns:
            Records newest first, each with its changed file names
        """
        day_commits: list[dict[str, Any]] = []
        try:
            for page in range(1, MAX_COMMIT_PAGES + 1):
                data = await self._call_json(
                    "list_commits",
                    {
                        "owner": self.owner,
                        "repo": self.repo,
                        "sha": branch,
                        "perPage": COMMITS_PER_PAGE,
                        "page": page,
                    },
                )
                if not isinstance(data, list) or len(data) == 0:
                    break

                page_commits = cast(list[dict[str, Any]], data)
                reached_older = False
                for commit in page_commits:
                    info = commit.get("commit") or {}
                    authored = ((info.get("author") or {}).get("date") or "")[:10]
                    committed = ((info.get("committer") or {}).get("date") or "")[:10]
                    if authored == date:
                        day_commits.append(commit)
                    if committed and committed < date:
                        reached_older = True

                if reached_older or len(page_commits) < COMMITS_PER_PAGE:
                    break
            else:
                logger.warning(
                    "Stopped listing after %d pages; %s may have more commits",
                    MAX_COMMIT_PAGES,
                    date,
                )
        except MCPError:
            raise
        except Exception as e:
            raise MCPError(f"Error fetching commits: {e}") from e

        logger.info("Found %d commits on %s for %s", len(day_commits), branch, date)

        records = []
        for commit in day_commits:
            full = await self.get_commit(str(commit["sha"]))
            files = [f.get("filename", "") for f in full.get("files") or []]
            records.append(record_from_api(full, files))
        return records
