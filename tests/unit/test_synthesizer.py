import asyncio
from typing import Any

from langchain_core.messages import AIMessage

from job_router.agent.fallback import NOT_FOUND_MESSAGE, ContextEchoSynthesizer
from job_router.agent.synthesizer import NO_ANSWER_MESSAGE, AnswerSynthesizer
from job_router.config import LLMConfig
from job_router.retrieval.dispatcher import NO_RELEVANT_JOBS


class StubLLM:
    def __init__(self, reply: Any = "", *, error: Exception | None = None, delay: float = 0.0) -> None:
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls: list[list[Any]] = []

    async def ainvoke(self, messages: list[Any]) -> Any:
        self.calls.append(messages)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


def _synthesize(llm: Any, context: str = "ctx", **config: Any) -> str:
    synthesizer = AnswerSynthesizer(llm, llm_config=LLMConfig(**config))
    return asyncio.run(synthesizer.synthesize("Any React jobs?", context))


def test_user_message_labels_context_and_question() -> None:
    llm = StubLLM("- React Developer at Initech")

    answer = _synthesize(llm, "- Role: React Developer")

    assert answer == "- React Developer at Initech"
    (messages,) = llm.calls
    assert messages[0].type == "system"
    assert messages[1].content == "JOB DATA:\n- Role: React Developer\n\nUSER QUESTION:\nAny React jobs?"


def test_list_content_parts_are_joined() -> None:
    llm = StubLLM([{"type": "text", "text": "Found"}, {"type": "text", "text": "two jobs."}])

    assert _synthesize(llm) == "Found two jobs."


def test_connection_error_becomes_answer_text() -> None:
    answer = _synthesize(StubLLM(error=ConnectionError("connection refused")))

    assert answer == "Connection Error: connection refused"


def test_timeout_becomes_answer_text() -> None:
    answer = _synthesize(StubLLM("late", delay=1.0), timeout_seconds=0.01)

    assert answer.startswith("Connection Error: ")
    assert "TimeoutError" in answer


def test_empty_reply_becomes_apology() -> None:
    assert _synthesize(StubLLM("   ")) == NO_ANSWER_MESSAGE


def test_echo_synthesizer_reports_marker_as_not_found() -> None:
    answer = asyncio.run(ContextEchoSynthesizer().synthesize("astronaut jobs", NO_RELEVANT_JOBS))

    assert answer == NOT_FOUND_MESSAGE


def test_echo_synthesizer_lists_role_lines() -> None:
    context = (
        "Strict database result for salary sort:\n"
        "- Role: Senior Laravel Engineer | Location: Remote | Company: Globex | Pay: 60,000 EGP | Tags: [Laravel]\n"
    )

    answer = asyncio.run(ContextEchoSynthesizer().synthesize("top pay", context))

    assert answer.splitlines() == [
        "Here is what I found:",
        "- Senior Laravel Engineer | Location: Remote | Company: Globex | Pay: 60,000 EGP | Tags: [Laravel]",
    ]


def test_echo_synthesizer_summarizes_semantic_blocks() -> None:
    context = (
        "Here are the most relevant jobs found:\n\n"
        "JOB ID: 3\nTITLE: React Developer\nCOMPANY: Initech\nLOCATION: Giza\n"
        "SALARY: 40,000 EGP\nTAGS: React\nDESCRIPTION: UI.\n-----------------------------------\n"
    )

    answer = asyncio.run(ContextEchoSynthesizer().synthesize("react", context))

    assert answer.splitlines()[1] == "- React Developer (Initech, Giza, 40,000 EGP)"
