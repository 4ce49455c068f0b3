import pytest

from job_router.agent.router import FALLBACK_DECISION, extract_json_span, parse_decision
from job_router.config import RetrievalConfig
from job_router.types import RouteDecision, RouteTool, SortDirection


def test_extract_json_span_tolerates_prose_and_newlines() -> None:
    reply = 'Sure! Here is the routing:\n{\n  "tool": "salary_query",\n  "limit": 3\n}\nHope it helps.'

    assert extract_json_span(reply) == '{\n  "tool": "salary_query",\n  "limit": 3\n}'


def test_extract_json_span_returns_none_without_braces() -> None:
    assert extract_json_span("I cannot decide.") is None
    assert extract_json_span("") is None


def test_parse_decision_reads_all_fields() -> None:
    decision = parse_decision(
        {"tool": "salary_query", "sort": "asc", "limit": 3, "search_term": "Laravel"}
    )

    assert decision == RouteDecision(
        tool=RouteTool.SALARY,
        sort_direction=SortDirection.ASC,
        result_limit=3,
        search_term="Laravel",
    )


def test_parse_decision_defaults_for_empty_object() -> None:
    decision = parse_decision({})

    assert decision.tool is RouteTool.SEMANTIC
    assert decision.sort_direction is SortDirection.DESC
    assert decision.result_limit == 5
    assert decision.search_term is None


@pytest.mark.parametrize(
    ("raw_limit", "expected"),
    [
        (3, 3),
        (0, 1),
        (-7, 1),
        (21, 20),
        (1000, 20),
        ("4", 4),
        ("12 jobs", 12),
        ("many", 1),
        (7.9, 7),
        (float("nan"), 1),
        ([5], 1),
        (None, 5),
    ],
)
def test_limit_is_always_clamped(raw_limit: object, expected: int) -> None:
    decision = parse_decision({"limit": raw_limit})

    assert decision.result_limit == expected
    assert 1 <= decision.result_limit <= 20


def test_unknown_tool_and_sort_fall_back() -> None:
    decision = parse_decision({"tool": "drop_tables", "sort": "sideways"})

    assert decision.tool is RouteTool.SEMANTIC
    assert decision.sort_direction is SortDirection.DESC


def test_unhashable_tool_value_is_tolerated() -> None:
    assert parse_decision({"tool": ["salary_query"]}).tool is RouteTool.SEMANTIC


def test_blank_search_term_becomes_none() -> None:
    assert parse_decision({"search_term": "   "}).search_term is None
    assert parse_decision({"search_term": " Vue "}).search_term == "Vue"
    assert parse_decision({"search_term": 42}).search_term == "42"


def test_non_mapping_payload_yields_defaults() -> None:
    assert parse_decision(["salary_query"]) == RouteDecision()
    assert parse_decision(None) == RouteDecision()


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"tool": "recency_query", "limit": "99", "search_term": " React "},
        {"tool": "salary_query", "sort": "ASC", "limit": -3},
        {"tool": 5, "sort": None, "limit": "x", "search_term": ""},
    ],
)
def test_defaulting_is_idempotent(payload: dict[str, object]) -> None:
    once = parse_decision(payload)
    twice = parse_decision(once.to_payload())

    assert twice == once


def test_fallback_decision_shape() -> None:
    assert FALLBACK_DECISION == RouteDecision(
        tool=RouteTool.SEMANTIC,
        sort_direction=SortDirection.DESC,
        result_limit=15,
        search_term=None,
    )


def test_limit_respects_configured_maximum() -> None:
    config = RetrievalConfig(max_limit=10)

    assert parse_decision({"limit": 15}, config).result_limit == 10


def test_very_long_numeric_limit_string_is_clamped() -> None:
    assert parse_decision({"limit": "9" * 5000}).result_limit == 20
    assert parse_decision({"limit": "-" + "9" * 5000}).result_limit == 1
