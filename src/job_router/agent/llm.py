"""Chat model construction and bounded completion calls."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

from langchain_core.messages import BaseMessage

from job_router.config import LLMConfig
from job_router.exceptions import CompletionError


def create_chat_model(config: LLMConfig, *, temperature: float) -> Any:
    """Build an OpenAI-compatible chat model, or None when no key is configured."""
    if not config.configured:
        return None

    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=config.model,
        api_key=config.api_key,
        base_url=config.base_url,
        temperature=temperature,
        timeout=config.timeout_seconds,
        max_retries=0,
    )


async def complete(llm: Any, messages: Sequence[BaseMessage], *, timeout: float) -> str:
    """Run one completion and return the message text.

    Raises `asyncio.TimeoutError` when the call exceeds `timeout`, whatever the
    client raises on transport errors, and `CompletionError` when the reply
    carries no message content.
    """
    response = await asyncio.wait_for(llm.ainvoke(list(messages)), timeout=timeout)
    text = extract_message_text(response)
    if not text.strip():
        raise CompletionError("completion returned no message content")
    return text


def extract_message_text(response: Any) -> str:
    if response is None:
        return ""
    if isinstance(response, str):
        return response
    if isinstance(response, dict):
        return _content_to_text(response.get("content"))
    return _content_to_text(getattr(response, "content", None))


def _content_to_text(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                if "text" in item:
                    parts.append(str(item["text"]))
            else:
                parts.append(str(item))
        return " ".join(parts).strip()
    return str(content)
