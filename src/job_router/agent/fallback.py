"""Deterministic answer synthesis when no external LLM is configured."""

from __future__ import annotations

import re

from job_router.retrieval.dispatcher import NO_RELEVANT_JOBS

_RECORD_LINE = re.compile(r"^-\s+Role:\s+(?P<body>.+)$")
_BLOCK_FIELD = re.compile(r"^(?P<key>TITLE|COMPANY|LOCATION|SALARY):\s*(?P<value>.*)$")

NOT_FOUND_MESSAGE = "Sorry, I couldn't find any matching jobs."


class ContextEchoSynthesizer:
    """Answers straight from the context block without any model call.

    This keeps the same contract as `AnswerSynthesizer` and is used in
    local/offline environments where no completion endpoint is configured.
    It can only repeat records that are present in the context.
    """

    def __init__(self, max_items: int = 5) -> None:
        self.max_items = max_items

    async def synthesize(self, question: str, context: str) -> str:
        del question  # echo synthesis ignores phrasing.
        items = _parse_context(context)
        if not items:
            return NOT_FOUND_MESSAGE

        lines = ["Here is what I found:"]
        lines.extend(f"- {item}" for item in items[: self.max_items])
        return "\n".join(lines)


def _parse_context(context: str) -> list[str]:
    if not context or context.strip() == NO_RELEVANT_JOBS:
        return []

    items: list[str] = []
    block: dict[str, str] = {}
    for line in context.splitlines():
        line = line.strip()
        match = _RECORD_LINE.match(line)
        if match:
            items.append(match.group("body"))
            continue
        field = _BLOCK_FIELD.match(line)
        if field:
            block[field.group("key")] = field.group("value")
            continue
        if line.startswith("---") and block:
            items.append(_format_block(block))
            block = {}
    if block:
        items.append(_format_block(block))
    return items


def _format_block(block: dict[str, str]) -> str:
    title = block.get("TITLE", "Untitled role")
    details = [block[key] for key in ("COMPANY", "LOCATION", "SALARY") if block.get(key)]
    return f"{title} ({', '.join(details)})" if details else title
