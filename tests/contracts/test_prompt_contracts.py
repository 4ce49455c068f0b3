import json

import pytest

from job_router.agent.router import ROUTER_PROMPT, extract_json_span
from job_router.agent.synthesizer import ANSWER_PROMPT
from job_router.types import RouteTool


def test_router_prompt_names_every_tool_and_schema_key() -> None:
    system, human = ROUTER_PROMPT.format_messages(question="top 3 Laravel jobs")

    for tool in RouteTool:
        assert f'"{tool.value}"' in system.content
    for key in ("tool", "sort", "limit", "search_term"):
        assert f'"{key}"' in system.content
    assert "Return ONLY valid JSON" in system.content
    assert human.content == "top 3 Laravel jobs"


def test_router_schema_block_renders_literal_braces() -> None:
    (system, _) = ROUTER_PROMPT.format_messages(question="q")

    span = extract_json_span(system.content)

    assert span is not None
    assert span.startswith("{\n")
    assert "{{" not in system.content


def test_answer_prompt_restricts_to_job_data() -> None:
    system, human = ANSWER_PROMPT.format_messages(context="CTX", question="QUESTION")

    assert '**ONLY** the "JOB DATA"' in system.content
    assert "Do not make up jobs" in system.content
    assert "couldn't find any matching jobs" in system.content
    assert human.content.startswith("JOB DATA:\nCTX")
    assert human.content.endswith("USER QUESTION:\nQUESTION")


def test_router_schema_example_is_not_valid_json() -> None:
    # `|` alternatives keep a model that echoes the schema on the fallback path.
    (system, _) = ROUTER_PROMPT.format_messages(question="q")

    with pytest.raises(json.JSONDecodeError):
        json.loads(extract_json_span(system.content))
