"""
Structured summary returned by the engine, and its JSON parsing.
"""

import json
import re
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import MalformedResponseError

_CODE_FENCE = re.compile(r"^```(?:json)?\s*\n(.*?)\n?```$", re.DOTALL)


class Point(BaseModel):
    """One summarized change, citing the commits it was derived from."""

    model_config = ConfigDict(populate_by_name=True)

    text: str
    commits: list[str] = Field(min_length=1)
    is_breaking: bool = Field(default=False, alias="isBreaking")


class Category(BaseModel):
    title: str
    points: list[Point]


class StructuredSummary(BaseModel):
    """Title, overview paragraph and ordered categories of points."""

    title: str
    overview: str
    categories: list[Category]

    def cited_commits(self) -> list[str]:
        """Every commit identifier cited by any point, in first-seen order."""
        seen: dict[str, None] = {}
        for category in self.categories:
            for point in category.points:
                for commit in point.commits:
                    seen.setdefault(commit, None)
        return list(seen)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def parse_structured_summary(text: str) -> StructuredSummary:
    """
    Parse JSON-mode model output into a StructuredSummary.

    A surrounding markdown code fence is tolerated; anything else that is not
    a JSON object of the expected shape is rejected.

    Raises:
        MalformedResponseError: If the text is not valid JSON or the JSON
            does not match the summary shape
    """
    candidate = (text or "").strip()
    fenced = _CODE_FENCE.match(candidate)
    if fenced:
        candidate = fenced.group(1).strip()

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(
            f"Model response is not valid JSON: {e}", raw_text=text
        ) from e

    try:
        return StructuredSummary.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(
            f"Model response does not match the summary shape: {e}", raw_text=text
        ) from e


def find_unknown_citations(
    summary: StructuredSummary, identifiers: Iterable[str]
) -> list[str]:
    """Return cited commit identifiers that are not in ``identifiers``."""
    known = set(identifiers)
    return [commit for commit in summary.cited_commits() if commit not in known]
