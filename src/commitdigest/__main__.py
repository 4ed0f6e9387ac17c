#!/usr/bin/env python3
"""
commitdigest - AI summaries of a repository's daily commits

Entry point for running commitdigest as a module.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .adapters import create_adapter
from .config import (
    get_ignored_bot_emails,
    get_required_env_var,
    load_environment_variables,
    load_summary_config,
    provider_settings_from_env,
)
from .constants import DEFAULT_BRANCH, ENV_VARS
from .engine import DigestEngine
from .exceptions import DigestError
from .github_client import GitHubMCPClient
from .models import ChangeRecord, DailySummary, SummaryConfig
from .summary import StructuredSummary, find_unknown_citations
from .utils import filter_relevant_records, validate_repository_format

logger = logging.getLogger("commitdigest")


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="commitdigest - AI summaries of daily repository changes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m commitdigest daily chromium/chromium 2025-06-02
  python -m commitdigest daily chromium/chromium 2025-06-02 --provider nexos
  python -m commitdigest daily chromium/chromium 2025-06-02 --commits-file commits.json
  python -m commitdigest weekly --dailies week.json --start-date 2025-06-02 \\
      --end-date 2025-06-08 --year 2025 --week 23
        """,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    daily = subparsers.add_parser("daily", help="Summarize one day of commits.")
    daily.add_argument(
        "repository",
        help="Repository in format 'owner/repo' (e.g., chromium/chromium)",
    )
    daily.add_argument("date", help="Day to summarize, as YYYY-MM-DD.")
    daily.add_argument(
        "--branch",
        default=DEFAULT_BRANCH,
        help=f"Branch to read commits from. Defaults to '{DEFAULT_BRANCH}'.",
    )
    daily.add_argument(
        "--commits-file",
        type=str,
        help="JSON list of commit records to summarize instead of listing them from GitHub.",
    )

    weekly = subparsers.add_parser("weekly", help="Roll daily summaries up into a week.")
    weekly.add_argument(
        "--dailies",
        required=True,
        help="JSON list of daily summaries (as written by the daily command).",
    )
    weekly.add_argument("--start-date", required=True, help="First day of the week.")
    weekly.add_argument("--end-date", required=True, help="Last day of the week.")
    weekly.add_argument("--year", type=int, required=True, help="ISO year.")
    weekly.add_argument("--week", type=int, required=True, help="ISO week number.")

    for sub in (daily, weekly):
        sub.add_argument("--config", type=str, help="Path to the JSON summary config.")
        sub.add_argument(
            "--provider",
            type=str,
            help="LLM provider (gemini, nexos, openai). Overrides the config file.",
        )

    args = parser.parse_args(argv)

    if args.command == "weekly" and not 1 <= args.week <= 53:
        parser.error("--week must be between 1 and 53")

    return args


def read_json_list(path: str) -> list:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise DigestError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, list):
        raise DigestError(f"{path} must hold a JSON list")
    return data


def write_output(config: SummaryConfig, name: str, payload: dict) -> None:
    """Save a result under the configured output path, if any."""
    if not config.output_path:
        return
    target = Path(config.output_path) / name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Saved %s", target)


def make_engine(
    config: SummaryConfig, provider: str | None, fetcher=None
) -> DigestEngine:
    provider = provider or config.llm_provider
    settings = provider_settings_from_env(provider)
    return DigestEngine(lambda: create_adapter(provider, settings), fetcher)


async def run_daily(args: argparse.Namespace, config: SummaryConfig) -> StructuredSummary | None:
    validate_repository_format(args.repository)
    get_required_env_var(
        ENV_VARS["GITHUB_TOKEN"],
        "This is required for the GitHub MCP server to authenticate with GitHub API",
    )

    async with GitHubMCPClient(args.repository, quiet=True) as github:
        engine = make_engine(config, args.provider, github)

        if args.commits_file:
            records = [ChangeRecord.from_dict(d) for d in read_json_list(args.commits_file)]
        else:
            records = await github.fetch_commits_for_date(args.branch, args.date)

        records.sort(key=lambda r: r.committer.time)
        relevant = filter_relevant_records(records, get_ignored_bot_emails(config))
        logger.info(
            "%d commits on %s, %d relevant after filtering",
            len(records),
            args.date,
            len(relevant),
        )
        if not relevant:
            print(f"No relevant commits found for {args.date}")
            return None

        summary = await engine.generate_summary(
            relevant,
            config,
            args.date,
            args.branch,
            len(records),
            len(relevant),
            records[0],
            records[-1],
        )

    unknown = find_unknown_citations(summary, [r.commit for r in relevant])
    if unknown:
        logger.warning(
            "Summary cites %d commit(s) that were not in the input: %s",
            len(unknown),
            ", ".join(unknown),
        )

    write_output(
        config,
        f"{args.date}.json",
        DailySummary(args.date, summary, len(records), len(relevant)).to_dict(),
    )
    return summary


async def run_weekly(args: argparse.Namespace, config: SummaryConfig) -> StructuredSummary:
    dailies = [DailySummary.from_dict(d) for d in read_json_list(args.dailies)]
    engine = make_engine(config, args.provider)
    summary = await engine.generate_weekly_summary(
        dailies, config, args.start_date, args.end_date, args.year, args.week
    )

    known = [commit for daily in dailies for commit in daily.summary.cited_commits()]
    unknown = find_unknown_citations(summary, known)
    if unknown:
        logger.warning(
            "Weekly summary cites %d commit(s) absent from the dailies: %s",
            len(unknown),
            ", ".join(unknown),
        )

    write_output(config, f"{args.year}-W{args.week:02d}.json", summary.to_dict())
    return summary


async def async_main(argv: list[str] | None = None) -> int:
    # Load environment variables from .env file if it exists
    load_environment_variables()

    args = parse_arguments(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_summary_config(args.config)
        if args.command == "daily":
            summary = await run_daily(args, config)
        else:
            summary = await run_weekly(args, config)
    except (DigestError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    if summary is not None:
        print(json.dumps(summary.to_dict(), indent=2))
    return 0


def main():
    """Synchronous entry point for the commitdigest command."""
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
