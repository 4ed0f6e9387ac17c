"""
Digest engine: the entry point turning commit records into summaries.
"""

import logging
from collections.abc import Callable, Sequence

from .adapters.base import PlatformAdapter
from .config import StrategySettings
from .constants import SYSTEM_PROMPTS
from .exceptions import ConfigurationError
from .models import ChangeRecord, DailySummary, SummaryConfig
from .prompts import build_weekly_prompt
from .strategy import STRATEGIES, SummaryRequest, SummaryStrategy
from .summary import StructuredSummary
from .tools import DetailFetcher, ToolExecutor

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[], PlatformAdapter]


class DigestEngine:
    """
    Generates daily and weekly structured summaries.

    Every generation call gets its own adapter from ``adapter_factory``, so
    conversations never leak between calls. The detail fetcher backs the
    model's tool and is only needed for daily summaries.
    """

    def __init__(
        self,
        adapter_factory: AdapterFactory,
        detail_fetcher: DetailFetcher | None = None,
        strategy_settings: StrategySettings | None = None,
    ):
        self.adapter_factory = adapter_factory
        self.tool_executor = (
            ToolExecutor(detail_fetcher) if detail_fetcher is not None else None
        )
        self.strategy_settings = strategy_settings or StrategySettings()

    def create_strategy(self, config: SummaryConfig) -> SummaryStrategy:
        if self.tool_executor is None:
            raise ConfigurationError("A detail fetcher is required for daily summaries")
        strategy_cls = STRATEGIES.get(config.strategy)
        if strategy_cls is None:
            raise ConfigurationError(f"Unknown strategy '{config.strategy}'")
        return strategy_cls(
            self.adapter_factory(), self.tool_executor, self.strategy_settings
        )

    async def generate_summary(
        self,
        records: Sequence[ChangeRecord],
        config: SummaryConfig,
        date_label: str,
        branch_label: str,
        total_count: int,
        relevant_count: int,
        first_record: ChangeRecord,
        last_record: ChangeRecord,
    ) -> StructuredSummary:
        """
        Summarize one day of commits.

        Args:
            records: Relevant commits in chronological order
            config: Summary configuration
            date_label: Day being summarized (YYYY-MM-DD)
            branch_label: Branch the commits were taken from
            total_count: Commits on the day before filtering
            relevant_count: Commits left after filtering
            first_record: Earliest commit of the day
            last_record: Latest commit of the day

        Raises:
            ValueError: If ``records`` is empty
            ProviderError: If the model could not be reached
            MalformedResponseError: If the final answer is not a valid summary
        """
        if not records:
            raise ValueError("Cannot summarize an empty commit list")

        strategy = self.create_strategy(config)
        logger.info(
            "Summarizing %d relevant commits of %s (%s) with the %s strategy",
            len(records),
            date_label,
            branch_label,
            strategy.name,
        )
        return await strategy.generate(
            SummaryRequest(
                records=records,
                config=config,
                date_label=date_label,
                branch_label=branch_label,
                total_count=total_count,
                relevant_count=relevant_count,
                first_record=first_record,
                last_record=last_record,
            )
        )

    async def generate_weekly_summary(
        self,
        daily_summaries: Sequence[DailySummary],
        config: SummaryConfig,
        start_date: str,
        end_date: str,
        year: int,
        week_number: int,
    ) -> StructuredSummary:
        """
        Aggregate daily summaries into one weekly summary.

        A single JSON-mode call, no tools: the dailies already carry every
        commit hash worth citing.
        """
        if not daily_summaries:
            raise ValueError("Cannot build a weekly summary without daily summaries")

        logger.info(
            "Generating weekly summary for %d-W%02d from %d daily summaries",
            year,
            week_number,
            len(daily_summaries),
        )
        adapter = self.adapter_factory()
        adapter.append(
            "user",
            build_weekly_prompt(
                daily_summaries, config, start_date, end_date, year, week_number
            ),
        )
        return await adapter.request_summary(SYSTEM_PROMPTS["WEEKLY"])
