"""
Utility functions for commitdigest.
"""

import re
from collections.abc import Iterable
from enum import Enum

from .constants import COMMIT_HASH_PATTERN, VERSION_BUMP_PATTERN
from .models import ChangeRecord


class Extraction(Enum):
    """Sentinel for hash extraction that found nothing usable."""

    NONE_FOUND = "none found"


NONE_FOUND = Extraction.NONE_FOUND


def extract_commit_hashes(
    text: str, allowed: Iterable[str] | None = None
) -> list[str] | Extraction:
    """
    Pull full commit hashes out of freeform model text.

    Only strict 40-character lowercase hex tokens are accepted. When
    ``allowed`` is given, tokens outside it are discarded.

    Args:
        text: Model output to scan
        allowed: Optional set of identifiers a hash must belong to

    Returns:
        Unique hashes in order of first appearance, or NONE_FOUND
    """
    allowed_set = set(allowed) if allowed is not None else None
    found: dict[str, None] = {}
    for match in re.findall(COMMIT_HASH_PATTERN, (text or "").lower()):
        if allowed_set is None or match in allowed_set:
            found.setdefault(match, None)
    return list(found) if found else NONE_FOUND


def is_relevant_record(record: ChangeRecord, ignored_emails: Iterable[str]) -> bool:
    """False for bot-authored commits and automated version bumps."""
    ignored = {email.lower() for email in ignored_emails}
    if record.author.email.lower() in ignored:
        return False
    if re.search(VERSION_BUMP_PATTERN, record.title, re.IGNORECASE):
        return False
    return True


def filter_relevant_records(
    records: list[ChangeRecord], ignored_emails: Iterable[str]
) -> list[ChangeRecord]:
    ignored = list(ignored_emails)
    return [record for record in records if is_relevant_record(record, ignored)]


def clean_reasoning_response(content: str) -> str:
    """
    Extract the final response from reasoning model output.

    Reasoning models often include reasoning steps wrapped in tags like:
    <thinking>...</thinking> or <reasoning>...</reasoning>

    This method extracts only the final answer that comes after these reasoning blocks.

    Args:
        content: Raw content from the model

    Returns:
        Cleaned content without reasoning tags
    """
    if not content:
        return content

    # Common reasoning tags used by various models (properly closed tags)
    closed_tag_patterns = [
        r"<thinking>.*?</thinking>",
        r"<reasoning>.*?</reasoning>",
        r"<analysis>.*?</analysis>",
        r"<internal_thought>.*?</internal_thought>",
        r"<reason>.*?</reason>",
        r"<think[^>]*>.*?</think>",  # think tags with attributes
    ]

    # Remove all properly closed reasoning blocks first
    cleaned_content = content
    for pattern in closed_tag_patterns:
        cleaned_content = re.sub(
            pattern, "", cleaned_content, flags=re.DOTALL | re.IGNORECASE
        )

    # Unclosed tags run until a blank line followed by a capitalized sentence
    unclosed_patterns = [
        r"<think[^>]*>\s*.*?(?=\n\n[A-Z])",
        r"<thinking[^>]*>\s*.*?(?=\n\n[A-Z])",
        r"<reasoning[^>]*>\s*.*?(?=\n\n[A-Z])",
        r"<analysis[^>]*>\s*.*?(?=\n\n[A-Z])",
    ]

    for pattern in unclosed_patterns:
        cleaned_content = re.sub(
            pattern, "", cleaned_content, flags=re.DOTALL | re.IGNORECASE
        )

    # Clean up any extra whitespace and newlines
    cleaned_content = re.sub(r"\n\s*\n\s*\n", "\n\n", cleaned_content)
    cleaned_content = cleaned_content.strip()

    # If the cleaned content is empty or too short, return original
    if len(cleaned_content) < 10:
        return content

    return cleaned_content


def validate_repository_format(repository: str) -> tuple[str, str]:
    """
    Validate and parse repository format.

    Args:
        repository: Repository in format 'owner/repo' or a github.com URL

    Returns:
        (owner, repo)

    Raises:
        ValueError: If repository format is invalid
    """
    if repository.startswith("https://"):
        if "github.com/" not in repository:
            raise ValueError("Repository URL must be from github.com")
        repository = repository.split("github.com/")[-1].strip("/")

    parts = repository.split("/")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise ValueError("Repository must be in format 'owner/repo'")
    return parts[0], parts[1]
