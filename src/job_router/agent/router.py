"""Remote routing: turn a question into a structured retrieval decision."""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from langchain_core.prompts import ChatPromptTemplate

from job_router.agent.llm import complete
from job_router.config import LLMConfig, RetrievalConfig
from job_router.types import RouteDecision, RouteTool, SortDirection

logger = logging.getLogger(__name__)

_ROUTER_SYSTEM_PROMPT = """
You are a database query router.
Return ONLY valid JSON. No markdown.

Tools:
1. "salary_query": questions about highest/lowest pay, salary sort.
2. "recency_query": questions about new, latest, recent jobs.
3. "semantic_query": everything else (complex skills, fuzzy descriptions).

Schema:
{{
  "tool": "salary_query" | "recency_query" | "semantic_query",
  "sort": "asc" | "desc",
  "limit": 5,
  "search_term": null | "string"
}}

INSTRUCTIONS:
- If user mentions a specific technology or title (e.g. "Laravel", "Manager", "Vue"), put it in "search_term".
- If no specific tech is mentioned, set "search_term": null.
- Extract "limit" if user asks for a number ("top 3"). Default 5.
""".strip()

ROUTER_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", _ROUTER_SYSTEM_PROMPT),
        ("human", "{question}"),
    ]
)

_JSON_SPAN = re.compile(r"\{.*\}", flags=re.DOTALL)
_LEADING_INT = re.compile(r"^\s*([-+]?\d{1,18})")

_DEFAULTS = RetrievalConfig()


def fallback_decision(config: RetrievalConfig) -> RouteDecision:
    """Decision used whenever the remote router is unavailable."""
    return RouteDecision(
        tool=RouteTool.SEMANTIC,
        sort_direction=SortDirection.DESC,
        result_limit=min(config.fallback_limit, config.max_limit),
        search_term=None,
    )


FALLBACK_DECISION = fallback_decision(_DEFAULTS)


def extract_json_span(text: str) -> str | None:
    """Return the outermost brace-delimited span of `text`, if any."""
    if not text:
        return None
    match = _JSON_SPAN.search(text)
    return match.group(0) if match else None


def parse_decision(payload: Any, config: RetrievalConfig | None = None) -> RouteDecision:
    """Build a fully defaulted decision from an untrusted mapping. Never raises."""
    config = config or _DEFAULTS
    if not isinstance(payload, dict):
        payload = {}

    return RouteDecision(
        tool=_coerce_tool(payload.get("tool")),
        sort_direction=_coerce_sort(payload.get("sort")),
        result_limit=_coerce_limit(payload.get("limit"), config),
        search_term=_coerce_search_term(payload.get("search_term")),
    )


class RouterClient:
    """Asks the completion endpoint which retrieval tool fits the question.

    `route` never fails: a missing model, a transport error, a timeout or an
    unparseable reply all yield `FALLBACK_DECISION`.
    """

    def __init__(
        self,
        llm: Any | None,
        *,
        llm_config: LLMConfig | None = None,
        retrieval_config: RetrievalConfig | None = None,
    ) -> None:
        self.llm = llm
        self.llm_config = llm_config or LLMConfig()
        self.retrieval_config = retrieval_config or RetrievalConfig()
        self.fallback = fallback_decision(self.retrieval_config)

    async def route(self, question: str) -> RouteDecision:
        if self.llm is None:
            logger.warning("Router model not configured; using fallback decision")
            return self.fallback

        messages = ROUTER_PROMPT.format_messages(question=question)
        try:
            raw = await complete(self.llm, messages, timeout=self.llm_config.timeout_seconds)
        except Exception as exc:
            logger.warning("Router call failed (%s); using fallback decision", exc.__class__.__name__)
            return self.fallback

        span = extract_json_span(raw)
        if span is None:
            logger.warning("Router reply had no JSON object; using fallback decision")
            return self.fallback
        try:
            payload = json.loads(span)
        except (ValueError, RecursionError):
            logger.warning("Router reply was not valid JSON; using fallback decision")
            return self.fallback
        if not isinstance(payload, dict):
            logger.warning("Router reply was not a JSON object; using fallback decision")
            return self.fallback

        decision = parse_decision(payload, self.retrieval_config)
        logger.info("Routed question to %s (limit=%d)", decision.tool.value, decision.result_limit)
        return decision


def _coerce_tool(value: Any) -> RouteTool:
    try:
        return RouteTool(value)
    except (TypeError, ValueError):
        return RouteTool.SEMANTIC


def _coerce_sort(value: Any) -> SortDirection:
    if isinstance(value, str) and value.strip().lower() == SortDirection.ASC.value:
        return SortDirection.ASC
    return SortDirection.DESC


def _coerce_limit(value: Any, config: RetrievalConfig) -> int:
    if value is None:
        limit = config.default_limit
    elif isinstance(value, bool):
        limit = int(value)
    elif isinstance(value, int):
        limit = value
    elif isinstance(value, float):
        limit = int(value) if math.isfinite(value) else 0
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        limit = int(match.group(1)) if match else 0
    else:
        limit = 0
    return min(max(limit, 1), config.max_limit)


def _coerce_search_term(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    term = str(value).strip()
    return term or None
