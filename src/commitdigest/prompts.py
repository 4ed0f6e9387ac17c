"""
Prompt builders.

Pure functions rendering commits, configuration and prior model output into
prompt text. Every builder that receives commits embeds each full commit hash
at least once so the model can cite it back.
"""

from collections.abc import Sequence

from .constants import (
    DEFAULT_BREAKING_CHANGE_CRITERIA,
    GITHUB_COMMIT_URL,
    MAX_FILES_IN_PROMPT,
    PROJECT_NAME,
    STRICT_BREAKING_CHANGE_CRITERIA,
)
from .models import ChangeRecord, DailySummary, SummaryConfig

CATEGORY_EXAMPLES = (
    '"Performance", "Security", "Blink Engine", "V8 JavaScript Engine", '
    '"UI/UX", "Developer Tools", "Bug Fixes", and "Infrastructure"'
)

SUMMARY_JSON_SHAPE = """{{
  "title": "{title}",
  "overview": "{overview}",
  "categories": [
    {{
      "title": "Category Name",
      "points": [
        {{
          "text": "Summary text with markdown formatting. Use `code` for file paths and code elements.",
          "commits": ["full_commit_hash1", "full_commit_hash2"],
          "isBreaking": false
        }}
      ]
    }}
  ]
}}"""


def format_record(record: ChangeRecord) -> str:
    text = f"Commit: {record.commit}\nMessage:\n{record.message}"
    if record.files:
        shown = record.files[:MAX_FILES_IN_PROMPT]
        text += f"\nFiles (top {len(shown)}):\n" + "\n".join(f"- {f}" for f in shown)
    return text


def format_records(records: Sequence[ChangeRecord]) -> str:
    """Hash, message and up to 20 file paths per commit."""
    return "\n---\n".join(format_record(record) for record in records)


def format_record_index(records: Sequence[ChangeRecord]) -> str:
    """One line per commit: full hash and first message line."""
    return "\n".join(f"- {record.commit} {record.title}" for record in records)


def breaking_criteria(config: SummaryConfig) -> str:
    return config.breaking_change_criteria.strip() or DEFAULT_BREAKING_CHANGE_CRITERIA


def keywords_text(config: SummaryConfig) -> str:
    if config.interesting_keywords.strip():
        return f"These keywords are of special interest: {config.interesting_keywords}"
    return "No special keywords were provided."


def focus_areas_text(config: SummaryConfig) -> str:
    if config.focus_areas:
        return f"Focus particularly on these areas: {', '.join(config.focus_areas)}"
    return ""


def custom_instructions_text(config: SummaryConfig) -> str:
    if config.custom_instructions.strip():
        return f"\n**CUSTOM INSTRUCTIONS:**\n{config.custom_instructions.strip()}\n"
    return ""


def _overview_data(
    config: SummaryConfig,
    total_count: int,
    relevant_count: int,
    first_record: ChangeRecord,
    last_record: ChangeRecord,
) -> str:
    lines = [
        f"- **Total Commits:** {total_count}",
        f"- **Relevant Commits:** {relevant_count}",
        f"- **First Commit Hash:** {first_record.commit}",
        f"- **Last Commit Hash:** {last_record.commit}",
    ]
    if config.interesting_keywords.strip():
        lines.append(f"- **Keywords of Interest:** {config.interesting_keywords}")
    if config.focus_areas:
        lines.append(f"- **Focus Areas:** {', '.join(config.focus_areas)}")
    return "\n".join(lines)


def build_investigation_prompt(
    records: Sequence[ChangeRecord],
    config: SummaryConfig,
    date_label: str,
    branch_label: str,
    total_count: int,
    relevant_count: int,
    first_record: ChangeRecord,
    last_record: ChangeRecord,
) -> str:
    """Initial prompt of the agentic investigation over one batch of commits."""
    return f"""You are an expert software engineer and technical writer creating a daily summary of changes for the {PROJECT_NAME} project.

**YOUR TOOLS:**
You have access to a function called "get_commit_details" that fetches detailed information about any commit: file diffs and patches, exact additions/deletions, the complete list of modified files and change statistics.

**WHEN TO USE THE TOOL:**
- When a commit message is vague or unclear about what actually changed
- When you need to understand the scope or impact of a change
- When grouping commits and want to confirm they're actually related
- When judging whether a change is breaking and need concrete details

Call it with an array of full commit hashes; you can request up to 10 commits at once.

**YOUR TASK:**
Based on the commits from {date_label} on the '{branch_label}' branch, prepare a structured summary.

1. **Analyze and Categorize:**
   - Review the commit messages and file paths provided
   - Group commits into logical categories like {CATEGORY_EXAMPLES}
   - Skip any categories that have no relevant commits
2. **Content Prioritization:**
   - {keywords_text(config)}
   - {focus_areas_text(config)}
   - Pay special attention to BREAKING CHANGES. Criteria: {breaking_criteria(config)}
   - Focus on user-facing changes, significant architectural shifts, and major bug fixes
   - Synthesize and summarize, don't list every commit separately unless necessary
{custom_instructions_text(config)}
3. **Tone:** Professional, informative, and accessible to software engineers.

**Overview Data:**
{_overview_data(config, total_count, relevant_count, first_record, last_record)}

**Available Commit Data (hash, message, and up to {MAX_FILES_IN_PROMPT} file paths):**
---
{format_records(records)}
---

Start by analyzing the commits. Use get_commit_details when you need more context. When you are done investigating, reply with your findings as plain text, citing full commit hashes."""


def build_chunk_prompt(
    records: Sequence[ChangeRecord],
    config: SummaryConfig,
    chunk_index: int,
    total_chunks: int,
) -> str:
    """Prompt for a plain-text summary of one chunk of a large day."""
    return f"""You are analyzing a chunk ({chunk_index + 1}/{total_chunks}) of {PROJECT_NAME} commits.

**YOUR TOOL:**
You can call "get_commit_details" with up to 10 commit hashes to fetch detailed diffs, patches, and statistics.

**YOUR TASK:**
Create a concise summary of these commits grouped by logical categories ({CATEGORY_EXAMPLES}, etc.).

For each category, list key changes with:
- What changed (be specific based on commit messages or fetched details)
- Which commits (include full hashes)
- Whether the change is breaking. Criteria: {breaking_criteria(config)}

{keywords_text(config)}
{focus_areas_text(config)}
{custom_instructions_text(config)}
**Commits:**
---
{format_records(records)}
---

Provide your summary as plain text, not JSON. Focus on the most important changes."""


def build_synthesis_prompt(
    chunk_summaries: Sequence[str],
    config: SummaryConfig,
    date_label: str,
    branch_label: str,
    total_count: int,
    relevant_count: int,
    first_record: ChangeRecord,
    last_record: ChangeRecord,
) -> str:
    """Prompt merging ordered chunk summaries into one analysis."""
    summaries = "\n".join(
        f"\n=== Chunk {index + 1} ===\n{summary}"
        for index, summary in enumerate(chunk_summaries)
    )
    return f"""You are creating a final daily summary for {PROJECT_NAME} changes on {date_label} ('{branch_label}' branch).

Below are pre-analyzed summaries of different parts of the day's commits, in commit order. Synthesize them into one coherent analysis.
Focus on changes that can impact developers working on {PROJECT_NAME}-based projects.
Especially look for BREAKING CHANGES, things that require code updates, or that allow improvements to existing code. Criteria: {breaking_criteria(config)}
{custom_instructions_text(config)}
**Pre-analyzed Summaries:**
{summaries}

**Overview Data:**
{_overview_data(config, total_count, relevant_count, first_record, last_record)}

Reply with the synthesized analysis as plain text, grouped by category and citing full commit hashes."""


def build_final_json_prompt(
    date_label: str,
    config: SummaryConfig,
    identifiers: Sequence[str],
) -> str:
    """Request for the final summary JSON, listing every citable hash."""
    shape = SUMMARY_JSON_SHAPE.format(
        title=f"{PROJECT_NAME} Digest: {date_label}",
        overview=(
            "A short paragraph stating total commits, relevant commits, and the "
            f"first/last commit as markdown links like [abc1234]({GITHUB_COMMIT_URL}<full_hash>)"
        ),
    )
    valid = "\n".join(f"- {identifier}" for identifier in identifiers)
    return f"""Now generate the final summary as a JSON object with this exact structure:
{shape}

Field rules:
- "text": concise and specific; do not write "BREAKING CHANGE" in the text, use the flag instead.
- "commits": one or more full commit hashes, taken ONLY from the list below.
- "isBreaking": true ONLY if the change meets these criteria: {breaking_criteria(config)}

Commit hashes you may cite:
{valid}

Provide ONLY the JSON object, no other text."""


def build_weekly_prompt(
    daily_summaries: Sequence[DailySummary],
    config: SummaryConfig,
    start_date: str,
    end_date: str,
    year: int,
    week_number: int,
) -> str:
    """Cross-day rollup of daily digests into one weekly summary."""
    daily_content = ""
    for daily in daily_summaries:
        daily_content += f"\n## {daily.date} - {daily.summary.title}\n\n"
        daily_content += f"Overview: {daily.summary.overview}\n\n"
        for category in daily.summary.categories:
            daily_content += f"### {category.title}\n"
            for point in category.points:
                prefix = "[BREAKING] " if point.is_breaking else ""
                refs = " ".join(f"({commit})" for commit in point.commits)
                daily_content += f"- {prefix}{point.text} {refs}\n"
            daily_content += "\n"

    total_commits = sum(d.total_commits for d in daily_summaries)
    relevant_commits = sum(d.relevant_commits for d in daily_summaries)
    shape = SUMMARY_JSON_SHAPE.format(
        title=f"{PROJECT_NAME} Weekly: {year} Week {week_number}",
        overview=(
            "A brief overview paragraph (2-4 sentences). Mention: "
            f"{relevant_commits} relevant commits out of {total_commits} total "
            f"across {len(daily_summaries)} days."
        ),
    )

    extra = ""
    if config.custom_instructions.strip():
        extra += f"Additional instructions: {config.custom_instructions.strip()}\n"
    if config.focus_areas:
        extra += f"Focus areas: {', '.join(config.focus_areas)}\n"

    return f"""You are an expert technical writer creating weekly summaries of {PROJECT_NAME} development.
You will be given {len(daily_summaries)} daily summaries covering {start_date} to {end_date}.

Your task is to create a concise weekly summary that:
1. Highlights the most important changes and breaking changes across the week
2. Groups related changes across multiple days into coherent themes
3. Skips less relevant or minor changes to keep the summary focused
4. Maintains technical accuracy while being accessible

{extra}
Respond with valid JSON matching this exact structure:
{shape}

Only cite full commit hashes that appear in the daily summaries below. Keep "isBreaking" true for changes marked [BREAKING] that you include.

Daily summaries for Week {week_number} of {year}:
{daily_content}
Create a focused weekly summary highlighting only the most important changes. Provide ONLY valid JSON, no additional text."""


# Phased breaking-change analysis


def build_candidates_prompt(
    records: Sequence[ChangeRecord],
    config: SummaryConfig,
    chunk_index: int,
    total_chunks: int,
) -> str:
    """Phase 1: find commits that might be breaking."""
    return f"""You are screening a chunk ({chunk_index + 1}/{total_chunks}) of {PROJECT_NAME} commits for possible BREAKING CHANGES.

A change is a candidate if it might meet these criteria: {breaking_criteria(config)}

You can call "get_commit_details" with up to 10 commit hashes to inspect diffs before deciding.
{custom_instructions_text(config)}
**Commits:**
---
{format_records(records)}
---

When done, list every candidate as one line: the full 40-character commit hash followed by a short reason.
If there are no candidates, reply with the single word NONE."""


def build_verify_prompt(
    records: Sequence[ChangeRecord],
    candidates: Sequence[str],
    config: SummaryConfig,
) -> str:
    """Phase 2: re-check candidates against stricter criteria, no tools."""
    candidate_set = set(candidates)
    candidate_records = [r for r in records if r.commit in candidate_set]
    others = [r for r in records if r.commit not in candidate_set]
    return f"""Verify the following candidate breaking changes in {PROJECT_NAME}.

Apply these stricter criteria: {STRICT_BREAKING_CHANGE_CRITERIA}
Baseline criteria: {breaking_criteria(config)}

**Candidates:**
---
{format_records(candidate_records)}
---

**Other commits in the same chunk (for context only):**
{format_record_index(others) or "- none"}

List each candidate that still qualifies as one line: the full 40-character commit hash followed by the reason.
If none qualifies, reply with the single word NONE."""


def build_context_prompt(
    records: Sequence[ChangeRecord],
    verified: Sequence[str],
    config: SummaryConfig,
) -> str:
    """Phase 3: open-ended context gathering around verified breaking changes."""
    verified_set = set(verified)
    verified_records = [r for r in records if r.commit in verified_set]
    return f"""Gather the context downstream {PROJECT_NAME} embedders need for these verified breaking changes: what was removed or changed, what replaces it, and which code must be updated.

Use "get_commit_details" (up to 10 hashes per call) on the verified commits and on any related commit from the chunk.

**Verified breaking changes:**
---
{format_records(verified_records) or "none"}
---

**All commits in the chunk:**
{format_record_index(records)}

Criteria: {breaking_criteria(config)}

When done, reply with your notes as plain text, citing full commit hashes."""


def build_recount_prompt(
    records: Sequence[ChangeRecord],
    verified: Sequence[str],
    context_notes: str,
    config: SummaryConfig,
) -> str:
    """Phase 4: detailed recount of the breaking changes, no tools."""
    verified_lines = "\n".join(f"- {commit}" for commit in verified) or "- none"
    return f"""Recount the breaking changes of this {PROJECT_NAME} chunk one final time.

Verified so far:
{verified_lines}

Context notes gathered:
{context_notes or "none"}

All commits in the chunk:
{format_record_index(records)}

Criteria: {STRICT_BREAKING_CHANGE_CRITERIA}

For each breaking change give: the full commit hash, what breaks, and what downstream code must do. Drop any that do not hold up. If none remain, reply NONE."""


def build_final_prose_prompt(
    records: Sequence[ChangeRecord],
    recount: str,
    config: SummaryConfig,
    chunk_index: int,
    total_chunks: int,
) -> str:
    """Phase 5: plain-text summary of the chunk, informed by the breaking-change recount."""
    return f"""Write the summary of chunk {chunk_index + 1}/{total_chunks} of {PROJECT_NAME} commits.

Group changes into logical categories ({CATEGORY_EXAMPLES}, etc.). For each change say what changed and cite the full commit hashes.
Mark a change as BREAKING only if it appears in the breaking-change recount below.

{keywords_text(config)}
{focus_areas_text(config)}
{custom_instructions_text(config)}
**Breaking-change recount:**
{recount or "NONE"}

**Commits:**
---
{format_records(records)}
---

Provide your summary as plain text, not JSON."""
