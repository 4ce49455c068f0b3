"""Final answer synthesis grounded in the retrieved job context."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from langchain_core.prompts import ChatPromptTemplate

from job_router.agent.llm import complete
from job_router.config import LLMConfig
from job_router.exceptions import CompletionError

logger = logging.getLogger(__name__)

_ANSWER_SYSTEM_PROMPT = """
You are Pixel AI, an expert Career Coach.

RULES:
1. **Chatting:** If the user asks general questions (e.g., "How are you?", "What is this?"), be friendly, brief, and professional.
2. **Job Data:** If the user asks about jobs, answer using **ONLY** the "JOB DATA" provided below. Do not make up jobs.
3. **Empty Data:** If the provided job data is empty or does not answer the specific question, politely say you couldn't find any matching jobs.
4. **Format:** Use bullet points for job listings.
""".strip()

ANSWER_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", _ANSWER_SYSTEM_PROMPT),
        ("human", "JOB DATA:\n{context}\n\nUSER QUESTION:\n{question}"),
    ]
)

NO_ANSWER_MESSAGE = "Sorry, the assistant could not answer."
CONNECTION_ERROR_PREFIX = "Connection Error: "


class Synthesizer(Protocol):
    async def synthesize(self, question: str, context: str) -> str:
        """Answer `question` using only `context`."""


class AnswerSynthesizer:
    """Calls the completion endpoint to phrase the final answer.

    Failures never escape: transport errors and timeouts become a
    `Connection Error: ...` answer, an empty reply becomes `NO_ANSWER_MESSAGE`.
    """

    def __init__(self, llm: Any, *, llm_config: LLMConfig | None = None) -> None:
        self.llm = llm
        self.llm_config = llm_config or LLMConfig()

    async def synthesize(self, question: str, context: str) -> str:
        messages = ANSWER_PROMPT.format_messages(context=context, question=question)
        try:
            return await complete(self.llm, messages, timeout=self.llm_config.timeout_seconds)
        except CompletionError:
            logger.warning("Answer call returned no content")
            return NO_ANSWER_MESSAGE
        except Exception as exc:
            logger.warning("Answer call failed: %s", _describe(exc))
            return CONNECTION_ERROR_PREFIX + _describe(exc)


def _describe(exc: Exception) -> str:
    message = str(exc).strip()
    if not message:
        return f"{exc.__class__.__name__} while contacting the answer service"
    return message
