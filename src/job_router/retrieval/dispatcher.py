"""Executes a routing decision and renders the context block."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from job_router.config import RetrievalConfig
from job_router.exceptions import RetrievalError
from job_router.obs.tracing import Timer
from job_router.retrieval.job_store import JobStore
from job_router.retrieval.vector_search import VectorSearch
from job_router.types import JobRecord, RouteDecision, RouteTool, ToolTrace

logger = logging.getLogger(__name__)

NO_RELEVANT_JOBS = "No relevant jobs found in the database."
NO_FILTER_MATCHES = "No jobs matched this filter."

_BLOCK_SEPARATOR = "-----------------------------------"

_Strategy = Callable[[RouteDecision, str], str]


class RetrievalDispatcher:
    """Runs one of the three retrieval strategies for a decision.

    Strategies are looked up by `RouteTool`; the table is checked for
    completeness at construction so a new tool cannot silently fall through
    to another strategy. Store and search failures are raised as
    `RetrievalError`: answering without real data is never attempted.
    """

    def __init__(
        self,
        store: JobStore,
        vector_search: VectorSearch,
        config: RetrievalConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.vector_search = vector_search
        self.config = config or RetrievalConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._strategies: dict[RouteTool, _Strategy] = {
            RouteTool.SALARY: self._salary_context,
            RouteTool.RECENCY: self._recency_context,
            RouteTool.SEMANTIC: self._semantic_context,
        }
        missing = set(RouteTool) - set(self._strategies)
        if missing:
            raise ValueError(f"No retrieval strategy for: {sorted(tool.value for tool in missing)}")

    def retrieve(self, decision: RouteDecision, question: str) -> str:
        context, _ = self.retrieve_traced(decision, question)
        return context

    def retrieve_traced(self, decision: RouteDecision, question: str) -> tuple[str, ToolTrace]:
        """Like `retrieve`, also returning the executed tool with its latency."""
        strategy = self._strategies[decision.tool]
        timer = Timer()
        try:
            context = strategy(decision, question)
        except RetrievalError:
            raise
        except Exception as exc:
            logger.exception("Retrieval failed for tool %s", decision.tool.value)
            raise RetrievalError(f"{decision.tool.value} failed: {exc}") from exc

        trace = ToolTrace(
            name=decision.tool.value,
            input_payload=decision.to_payload(),
            output_preview=context[:320],
            latency_ms=timer.elapsed_ms(),
        )
        return context, trace

    def _salary_context(self, decision: RouteDecision, question: str) -> str:
        del question  # salary ordering is fully described by the decision.
        records = self.store.list_by_salary(
            decision.sort_direction, decision.search_term, decision.result_limit
        )
        lines = [_header("Strict database result for salary sort", decision.search_term)]
        lines.extend(
            f"- Role: {record.title} | Location: {record.location} | Company: {record.company_name}"
            f" | Pay: {record.salary_text} | Tags: [{_tags(record)}]"
            for record in records
        )
        if not records:
            lines.append(NO_FILTER_MATCHES)
        return "\n".join(lines) + "\n"

    def _recency_context(self, decision: RouteDecision, question: str) -> str:
        del question
        records = self.store.list_recent(decision.search_term, decision.result_limit)
        now = self._clock()
        lines = [_header("Strict database result for recent jobs", decision.search_term)]
        lines.extend(
            f"- Role: {record.title} | Location: {record.location} | Company: {record.company_name}"
            f" | Posted: {humanize_age(record.posted_at, now)} | Tags: [{_tags(record)}]"
            for record in records
        )
        if not records:
            lines.append(NO_FILTER_MATCHES)
        return "\n".join(lines) + "\n"

    def _semantic_context(self, decision: RouteDecision, question: str) -> str:
        hits = self.vector_search.search(question)
        job_ids = list(dict.fromkeys(hit.id for hit in hits))
        if not job_ids:
            return NO_RELEVANT_JOBS

        records = self.store.fetch_many(job_ids, decision.result_limit)
        if not records:
            logger.info("Vector search returned %d ids but none are in the store", len(job_ids))
            return NO_RELEVANT_JOBS

        blocks = ["Here are the most relevant jobs found:\n"]
        for record in records:
            blocks.append(
                f"JOB ID: {record.id}\n"
                f"TITLE: {record.title}\n"
                f"COMPANY: {record.company_name}\n"
                f"LOCATION: {record.location}\n"
                f"SALARY: {record.salary_text}\n"
                f"TAGS: {_tags(record)}\n"
                f"DESCRIPTION: {truncate(record.description, self.config.description_chars)}\n"
                f"{_BLOCK_SEPARATOR}"
            )
        return "\n".join(blocks) + "\n"


def humanize_age(posted_at: datetime, now: datetime) -> str:
    """Relative age such as `3 days ago`; ages under one second read `1 second ago`."""
    if posted_at.tzinfo is None:
        posted_at = posted_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    seconds = max(int((now - posted_at).total_seconds()), 1)
    for unit, size in (
        ("year", 365 * 86400),
        ("month", 30 * 86400),
        ("week", 7 * 86400),
        ("day", 86400),
        ("hour", 3600),
        ("minute", 60),
    ):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'' if count == 1 else 's'} ago"
    return f"{seconds} second{'' if seconds == 1 else 's'} ago"


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length].rstrip() + "..."


def _header(title: str, search_term: str | None) -> str:
    suffix = f" (Filter: {search_term})" if search_term else ""
    return f"{title}{suffix}:"


def _tags(record: JobRecord) -> str:
    return ", ".join(sorted(record.tag_names))
