"""
Tests for the prompt builders.
"""

from commitdigest.constants import DEFAULT_BREAKING_CHANGE_CRITERIA, STRICT_BREAKING_CHANGE_CRITERIA
from commitdigest.models import SummaryConfig
from commitdigest.prompts import (
    build_candidates_prompt,
    build_chunk_prompt,
    build_context_prompt,
    build_final_json_prompt,
    build_final_prose_prompt,
    build_investigation_prompt,
    build_recount_prompt,
    build_synthesis_prompt,
    build_verify_prompt,
    format_record,
)

from conftest import commit_hash


class TestRecordFormatting:
    def test_files_are_capped(self, make_record):
        record = make_record(1, files=[f"dir/file{i}.cc" for i in range(30)])
        text = format_record(record)
        assert "Files (top 20):" in text
        assert "dir/file19.cc" in text
        assert "dir/file20.cc" not in text

    def test_no_files_section_without_files(self, make_record):
        assert "Files" not in format_record(make_record(1, files=()))


class TestDailyPrompts:
    """Test the agentic prompts."""

    def test_investigation_prompt_carries_every_hash_and_counts(self, make_record):
        records = [make_record(i) for i in range(1, 8)]
        prompt = build_investigation_prompt(
            records, SummaryConfig(), "2025-06-02", "main", 10, 7, records[0], records[-1]
        )
        for record in records:
            assert record.commit in prompt
        assert "**Total Commits:** 10" in prompt
        assert "'main' branch" in prompt
        assert DEFAULT_BREAKING_CHANGE_CRITERIA in prompt

    def test_config_steers_the_prompt(self, make_record):
        config = SummaryConfig(
            custom_instructions="Mention Android first.",
            interesting_keywords="WebGPU, Mojo",
            focus_areas=["GPU", "IPC"],
            breaking_change_criteria="Only removed command-line switches.",
        )
        prompt = build_chunk_prompt([make_record(1)], config, 0, 2)
        assert "Mention Android first." in prompt
        assert "WebGPU, Mojo" in prompt
        assert "GPU, IPC" in prompt
        assert "Only removed command-line switches." in prompt
        assert DEFAULT_BREAKING_CHANGE_CRITERIA not in prompt
        assert "chunk (1/2)" in prompt

    def test_synthesis_keeps_chunk_order(self, make_record):
        records = [make_record(1), make_record(2)]
        prompt = build_synthesis_prompt(
            ["first part", "second part"], SummaryConfig(), "2025-06-02", "main", 2, 2, *records
        )
        assert prompt.index("=== Chunk 1 ===\nfirst part") < prompt.index("=== Chunk 2 ===\nsecond part")

    def test_final_json_prompt_lists_citable_hashes(self):
        identifiers = [commit_hash(i) for i in range(5)]
        prompt = build_final_json_prompt("2025-06-02", SummaryConfig(), identifiers)
        for identifier in identifiers:
            assert f"- {identifier}" in prompt
        assert '"isBreaking"' in prompt
        assert "Chromium Digest: 2025-06-02" in prompt


class TestPhasedPrompts:
    """Test the breaking-change phase prompts."""

    def test_candidates_prompt(self, make_record):
        records = [make_record(1), make_record(2)]
        prompt = build_candidates_prompt(records, SummaryConfig(), 1, 3)
        assert "chunk (2/3)" in prompt
        assert all(r.commit in prompt for r in records)
        assert "NONE" in prompt

    def test_verify_prompt_separates_candidates(self, make_record):
        records = [make_record(1, "Remove Foo"), make_record(2, "Tidy tests")]
        prompt = build_verify_prompt(records, [commit_hash(1)], SummaryConfig())
        candidates, _, others = prompt.partition("**Other commits")
        assert "Remove Foo" in candidates
        assert f"- {commit_hash(2)} Tidy tests" in others
        assert STRICT_BREAKING_CHANGE_CRITERIA in prompt

    def test_context_recount_and_prose(self, make_record):
        records = [make_record(1), make_record(2)]
        context = build_context_prompt(records, [commit_hash(1)], SummaryConfig())
        assert commit_hash(2) in context

        recount = build_recount_prompt(records, [commit_hash(1)], "Foo moved to Bar.", SummaryConfig())
        assert f"- {commit_hash(1)}" in recount
        assert "Foo moved to Bar." in recount

        prose = build_final_prose_prompt(records, "Foo removed.", SummaryConfig(), 0, 1)
        assert "Foo removed." in prose
        assert all(r.commit in prose for r in records)
