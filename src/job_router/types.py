"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class RouteTool(str, Enum):
    """Retrieval strategy selected by a routing decision."""

    SALARY = "salary_query"
    RECENCY = "recency_query"
    SEMANTIC = "semantic_query"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class IntentRule:
    """A conversational intent answered locally without retrieval."""

    name: str
    keywords: tuple[str, ...]
    fuzzy_threshold: int
    response_text: str
    actions: tuple[dict[str, Any], ...] = ()

    def __post_init__(self) -> None:
        if self.fuzzy_threshold < 0:
            raise ValueError(f"fuzzy_threshold must be >= 0 for intent {self.name}")


@dataclass(frozen=True, slots=True)
class IntentMatch:
    """Outcome of a local intent hit."""

    intent: str
    response_text: str
    actions: tuple[dict[str, Any], ...]


@dataclass(frozen=True, slots=True)
class RouteDecision:
    """Which retrieval tool to run and with what parameters."""

    tool: RouteTool = RouteTool.SEMANTIC
    sort_direction: SortDirection = SortDirection.DESC
    result_limit: int = 5
    search_term: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Render in the router's wire schema."""
        return {
            "tool": self.tool.value,
            "sort": self.sort_direction.value,
            "limit": self.result_limit,
            "search_term": self.search_term,
        }


@dataclass(frozen=True, slots=True)
class JobRecord:
    """Read-only projection of a job posting with employer and tags."""

    id: int
    title: str
    location: str
    salary_text: str
    company_name: str
    tag_names: frozenset[str]
    posted_at: datetime
    description: str = ""


@dataclass(frozen=True, slots=True)
class SearchHit:
    """A ranked vector-search candidate."""

    id: int
    score: float


@dataclass(slots=True)
class ChatResponse:
    """Final answer returned for one question."""

    answer: str
    actions: list[dict[str, Any]] = field(default_factory=list)
    duration_seconds: float = 0.0

    def to_payload(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "actions": self.actions,
            "duration": self.duration_seconds,
            "duration_seconds": self.duration_seconds,
        }


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed retrieval tool."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float
