"""
Orchestration strategies driving the model conversation.

A strategy decides whether to chunk the day's commits, runs an investigation
per chunk (model turns interleaved with tool rounds, bounded by an iteration
cap with a fallback summary), synthesizes multiple chunk summaries, and always
ends with one JSON-mode call producing the StructuredSummary.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from .adapters.base import PlatformAdapter
from .config import StrategySettings
from .constants import FALLBACK_SUMMARY_REQUEST, SYSTEM_PROMPTS
from .models import ChangeRecord, SummaryConfig
from .prompts import (
    build_candidates_prompt,
    build_chunk_prompt,
    build_context_prompt,
    build_final_json_prompt,
    build_final_prose_prompt,
    build_investigation_prompt,
    build_recount_prompt,
    build_synthesis_prompt,
    build_verify_prompt,
)
from .summary import StructuredSummary
from .tools import ToolExecutor
from .utils import NONE_FOUND, clean_reasoning_response, extract_commit_hashes

logger = logging.getLogger(__name__)


class StrategyState(str, Enum):
    IDLE = "idle"
    CHUNKING_DECISION = "chunking_decision"
    INVESTIGATING = "investigating"
    TOOL_EXECUTING = "tool_executing"
    EXHAUSTED_FALLBACK = "exhausted_fallback"
    CHUNK_COMPLETE = "chunk_complete"
    SYNTHESIZING = "synthesizing"
    FINALIZING_JSON = "finalizing_json"
    DONE = "done"


@dataclass(frozen=True)
class SummaryRequest:
    """Inputs of one daily generation call."""

    records: Sequence[ChangeRecord]
    config: SummaryConfig
    date_label: str
    branch_label: str
    total_count: int
    relevant_count: int
    first_record: ChangeRecord
    last_record: ChangeRecord


@dataclass(frozen=True)
class InvestigationResult:
    text: str
    iterations: int
    exhausted: bool


def split_into_chunks(
    records: Sequence[ChangeRecord], threshold: int, chunk_size: int
) -> list[list[ChangeRecord]]:
    """
    Split records into order-preserving chunks.

    Batches no larger than ``threshold`` stay whole; larger ones are cut into
    ``chunk_size`` slices, the last one possibly shorter.
    """
    if len(records) <= threshold:
        return [list(records)]
    return [
        list(records[start : start + chunk_size])
        for start in range(0, len(records), chunk_size)
    ]


class SummaryStrategy(ABC):
    """Shared state machine; subclasses decide how one chunk is analyzed."""

    name = "base"

    def __init__(
        self,
        adapter: PlatformAdapter,
        tool_executor: ToolExecutor,
        settings: StrategySettings | None = None,
    ):
        self.adapter = adapter
        self.tool_executor = tool_executor
        self.settings = settings or StrategySettings()
        self.state = StrategyState.IDLE
        self.transitions: list[StrategyState] = []

    def _enter(self, state: StrategyState) -> None:
        self.state = state
        self.transitions.append(state)

    async def generate(self, request: SummaryRequest) -> StructuredSummary:
        """
        Run the whole pipeline for one day of commits.

        Raises:
            ProviderError: If a remote call fails for good
            MalformedResponseError: If the final JSON cannot be parsed
        """
        self.transitions = []
        self._enter(StrategyState.CHUNKING_DECISION)
        chunks = split_into_chunks(
            request.records, self.settings.chunk_threshold, self.settings.chunk_size
        )

        if len(chunks) == 1:
            logger.info("Starting %s analysis of %d commits...", self.name, len(chunks[0]))
            await self.analyze_chunk(request, chunks[0], 0, 1)
            self._enter(StrategyState.CHUNK_COMPLETE)
        else:
            logger.info(
                "Large commit set detected (%d commits), processing %d chunks",
                len(request.records),
                len(chunks),
            )
            chunk_summaries = []
            for index, chunk in enumerate(chunks):
                logger.info(
                    "Processing chunk %d/%d (%d commits)...",
                    index + 1,
                    len(chunks),
                    len(chunk),
                )
                chunk_summaries.append(
                    await self.analyze_chunk(request, chunk, index, len(chunks))
                )
                self._enter(StrategyState.CHUNK_COMPLETE)
            await self.synthesize(request, chunk_summaries)

        summary = await self.finalize_json(request)
        self._enter(StrategyState.DONE)
        return summary

    @abstractmethod
    async def analyze_chunk(
        self,
        request: SummaryRequest,
        chunk: list[ChangeRecord],
        index: int,
        total: int,
    ) -> str:
        """
        Analyze one chunk from a fresh conversation and return its summary.

        The conversation is left holding the exchange that produced the
        summary, so a single-chunk run can go straight to the JSON step.
        """
        ...

    def iteration_cap(self, total_chunks: int) -> int:
        if total_chunks > 1:
            return self.settings.max_chunk_iterations
        return self.settings.max_iterations

    async def investigate(
        self, prompt: str, max_iterations: int, system_prompt: str
    ) -> InvestigationResult:
        """
        Tool-calling loop over the current conversation.

        At most ``max_iterations`` tool-enabled calls are made. A response
        without tool invocations ends the loop; hitting the cap triggers one
        tool-less fallback call whose text is accepted as the result.
        """
        self.adapter.append("user", prompt)

        for iteration in range(1, max_iterations + 1):
            self._enter(StrategyState.INVESTIGATING)
            logger.info("Iteration %d...", iteration)
            response = await self.adapter.call(
                system_prompt=system_prompt, enable_tools=True
            )
            self.adapter.append_response(response)

            if not response.has_tool_invocations:
                logger.info("Investigation complete after %d iteration(s)", iteration)
                return InvestigationResult(
                    text=clean_reasoning_response(response.text).strip(),
                    iterations=iteration,
                    exhausted=False,
                )

            self._enter(StrategyState.TOOL_EXECUTING)
            logger.info(
                "AI requested details for %d tool call(s)",
                len(response.tool_invocations),
            )
            results = await self.tool_executor.execute(response.tool_invocations)
            for invocation, result in zip(response.tool_invocations, results):
                self.adapter.append("tool", result, invocation_id=invocation.id)

        self._enter(StrategyState.EXHAUSTED_FALLBACK)
        logger.warning(
            "Reached %d iterations without completion, using partial analysis",
            max_iterations,
        )
        self.adapter.append("user", FALLBACK_SUMMARY_REQUEST)
        response = await self.adapter.call(system_prompt=system_prompt)
        self.adapter.append_response(response)
        text = clean_reasoning_response(response.text).strip()
        if not text:
            text = (
                f"No summary was produced within {max_iterations} iterations; "
                "rely on the commit messages."
            )
        return InvestigationResult(text=text, iterations=max_iterations, exhausted=True)

    async def ask(self, prompt: str, system_prompt: str) -> str:
        """One tool-less exchange on the current conversation."""
        self.adapter.append("user", prompt)
        response = await self.adapter.call(system_prompt=system_prompt)
        self.adapter.append_response(response)
        return clean_reasoning_response(response.text).strip()

    async def synthesize(self, request: SummaryRequest, chunk_summaries: list[str]) -> str:
        self._enter(StrategyState.SYNTHESIZING)
        logger.info(
            "All chunks processed, synthesizing %d chunk summaries...",
            len(chunk_summaries),
        )
        self.adapter.reset()
        prompt = build_synthesis_prompt(
            chunk_summaries,
            request.config,
            request.date_label,
            request.branch_label,
            request.total_count,
            request.relevant_count,
            request.first_record,
            request.last_record,
        )
        return await self.ask(prompt, SYSTEM_PROMPTS["DAILY"])

    async def finalize_json(self, request: SummaryRequest) -> StructuredSummary:
        self._enter(StrategyState.FINALIZING_JSON)
        logger.info("Generating final JSON summary...")
        self.adapter.append(
            "user",
            build_final_json_prompt(
                request.date_label,
                request.config,
                [record.commit for record in request.records],
            ),
        )
        summary = await self.adapter.request_summary(SYSTEM_PROMPTS["JSON"])
        logger.info(
            "Final summary generated with %d categories", len(summary.categories)
        )
        return summary


class AgenticStrategy(SummaryStrategy):
    """Single investigation loop per chunk."""

    name = "agentic"

    async def analyze_chunk(
        self,
        request: SummaryRequest,
        chunk: list[ChangeRecord],
        index: int,
        total: int,
    ) -> str:
        self.adapter.reset()
        if total == 1:
            prompt = build_investigation_prompt(
                chunk,
                request.config,
                request.date_label,
                request.branch_label,
                request.total_count,
                request.relevant_count,
                request.first_record,
                request.last_record,
            )
            system_prompt = SYSTEM_PROMPTS["DAILY"]
        else:
            prompt = build_chunk_prompt(chunk, request.config, index, total)
            system_prompt = SYSTEM_PROMPTS["CHUNK"]

        result = await self.investigate(prompt, self.iteration_cap(total), system_prompt)
        return result.text


class PhasedStrategy(SummaryStrategy):
    """
    Five phases per chunk, conservative about breaking changes.

    1. find candidates (tools), 2. verify them under stricter criteria,
    3. gather context (tools), 4. recount, 5. write the chunk summary.
    Phases 2 to 4 are skipped when an earlier phase finds no breaking change.
    Each phase starts from a fresh conversation.
    """

    name = "phased"

    async def analyze_chunk(
        self,
        request: SummaryRequest,
        chunk: list[ChangeRecord],
        index: int,
        total: int,
    ) -> str:
        config = request.config
        cap = self.iteration_cap(total)
        chunk_ids = [record.commit for record in chunk]

        logger.info("Phase 1/5: finding breaking-change candidates")
        self.adapter.reset()
        found = await self.investigate(
            build_candidates_prompt(chunk, config, index, total),
            cap,
            SYSTEM_PROMPTS["BREAKING"],
        )
        candidates = extract_commit_hashes(found.text, allowed=chunk_ids)

        verified = NONE_FOUND
        if candidates is not NONE_FOUND:
            logger.info("Phase 2/5: verifying %d candidate(s)", len(candidates))
            self.adapter.reset()
            verdict = await self.ask(
                build_verify_prompt(chunk, candidates, config),
                SYSTEM_PROMPTS["BREAKING"],
            )
            verified = extract_commit_hashes(verdict, allowed=candidates)

        recount = "NONE"
        if verified is not NONE_FOUND:
            logger.info("Phase 3/5: gathering context for %d change(s)", len(verified))
            self.adapter.reset()
            context = await self.investigate(
                build_context_prompt(chunk, verified, config),
                cap,
                SYSTEM_PROMPTS["BREAKING"],
            )

            logger.info("Phase 4/5: recounting breaking changes")
            self.adapter.reset()
            recount = await self.ask(
                build_recount_prompt(chunk, verified, context.text, config),
                SYSTEM_PROMPTS["BREAKING"],
            )
        else:
            logger.info("No breaking-change candidates survived, skipping phases 2-4")

        logger.info("Phase 5/5: writing chunk summary")
        self.adapter.reset()
        return await self.ask(
            build_final_prose_prompt(chunk, recount, config, index, total),
            SYSTEM_PROMPTS["CHUNK"],
        )


STRATEGIES: dict[str, type[SummaryStrategy]] = {
    AgenticStrategy.name: AgenticStrategy,
    PhasedStrategy.name: PhasedStrategy,
}
