"""
Data models for commitdigest.
"""

from dataclasses import dataclass, field
from typing import Any

from .summary import StructuredSummary


@dataclass(frozen=True)
class Person:
    """Author or committer identity of a change record."""

    name: str
    email: str
    time: str


@dataclass(frozen=True)
class ChangeRecord:
    """One commit as fetched from the source host."""

    commit: str
    author: Person
    committer: Person
    message: str
    files: tuple[str, ...] = ()
    parents: tuple[str, ...] = ()
    tree: str | None = None

    @property
    def title(self) -> str:
        return self.message.split("\n")[0]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChangeRecord":
        """Build a record from its JSON form (the shape written by ``to_dict``)."""

        def person(raw: dict[str, Any] | None) -> Person:
            raw = raw or {}
            return Person(
                name=raw.get("name") or "",
                email=raw.get("email") or "",
                time=raw.get("time") or "",
            )

        return cls(
            commit=data["commit"],
            author=person(data.get("author")),
            committer=person(data.get("committer")),
            message=data.get("message", ""),
            files=tuple(data.get("files") or ()),
            parents=tuple(data.get("parents") or ()),
            tree=data.get("tree"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "commit": self.commit,
            "tree": self.tree,
            "parents": list(self.parents),
            "author": vars(self.author),
            "committer": vars(self.committer),
            "message": self.message,
            "files": list(self.files),
        }


@dataclass
class FileChange:
    """Per-file statistics of a fetched change detail."""

    filename: str
    status: str
    additions: int
    deletions: int
    changes: int
    patch: str | None = None


@dataclass
class ChangeDetail:
    """Enriched view of a commit, fetched only when the model asks for it."""

    commit: str
    message: str
    author: str
    date: str
    additions: int
    deletions: int
    files: list[FileChange] = field(default_factory=list)

    @property
    def files_changed(self) -> int:
        return len(self.files)


@dataclass
class SummaryConfig:
    """User options steering summary generation. Empty values apply no bias."""

    custom_instructions: str = ""
    interesting_keywords: str = ""
    focus_areas: list[str] = field(default_factory=list)
    ignored_bot_emails: list[str] = field(default_factory=list)
    llm_provider: str = "gemini"
    output_path: str = ""
    strategy: str = "agentic"  # 'agentic' or 'phased'
    breaking_change_criteria: str = ""


@dataclass
class DailySummary:
    """A previously generated daily digest, used as weekly rollup input."""

    date: str
    summary: StructuredSummary
    total_commits: int = 0
    relevant_commits: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DailySummary":
        return cls(
            date=data["date"],
            summary=StructuredSummary.model_validate(
                {
                    "title": data.get("title", f"Summary for {data['date']}"),
                    "overview": data.get("overview", ""),
                    "categories": data.get("categories", []),
                }
            ),
            total_commits=int(data.get("totalCommits", 0)),
            relevant_commits=int(data.get("relevantCommits", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            **self.summary.to_dict(),
            "totalCommits": self.total_commits,
            "relevantCommits": self.relevant_commits,
        }
