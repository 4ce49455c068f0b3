"""Per-request pipeline: local intent, routing, retrieval, synthesis."""

from __future__ import annotations

import asyncio
import logging

from job_router.agent.intents import LocalIntentMatcher
from job_router.agent.router import RouterClient
from job_router.agent.synthesizer import Synthesizer
from job_router.config import ServiceConfig
from job_router.obs.tracing import LOCAL_PATH, RETRIEVAL_PATH, Timer, TraceStore
from job_router.retrieval.dispatcher import RetrievalDispatcher
from job_router.types import ChatResponse

logger = logging.getLogger(__name__)


class ChatOrchestrator:
    """Answers one question per call; holds no per-request state.

    Flow: local intent match (hit answers immediately with no remote call) or
    router -> dispatcher -> synthesizer. Router and synthesizer degrade on
    their own; a `RetrievalError` from the dispatcher propagates to the caller.
    """

    def __init__(
        self,
        *,
        matcher: LocalIntentMatcher,
        router: RouterClient,
        dispatcher: RetrievalDispatcher,
        synthesizer: Synthesizer,
        trace_store: TraceStore | None = None,
        config: ServiceConfig | None = None,
    ) -> None:
        self.matcher = matcher
        self.router = router
        self.dispatcher = dispatcher
        self.synthesizer = synthesizer
        self.trace_store = trace_store or TraceStore()
        self.config = config or ServiceConfig()

    async def answer(self, question: str) -> ChatResponse:
        """Run one full turn and record a trace.

        Returns:
            A `ChatResponse` with the answer, any intent actions and the
            wall-clock duration since this call started.
        """

        timer = Timer()
        local = self.matcher.match(question)
        if local is not None:
            response = ChatResponse(
                answer=local.response_text,
                actions=[dict(action) for action in local.actions],
                duration_seconds=self._duration(timer),
            )
            self.trace_store.create_record(
                question=question,
                answer=response.answer,
                path=LOCAL_PATH,
                intent=local.intent,
                duration_seconds=response.duration_seconds,
            )
            logger.info("Answered locally via intent %s", local.intent)
            return response

        decision = await self.router.route(question)
        context, tool_trace = await asyncio.to_thread(
            self.dispatcher.retrieve_traced, decision, question
        )
        answer = await self.synthesizer.synthesize(question, context)

        response = ChatResponse(answer=answer, actions=[], duration_seconds=self._duration(timer))
        self.trace_store.create_record(
            question=question,
            answer=answer,
            path=RETRIEVAL_PATH,
            decision=decision,
            tool_traces=[tool_trace],
            duration_seconds=response.duration_seconds,
        )
        logger.info(
            "Answered via %s in %.3fs", decision.tool.value, response.duration_seconds
        )
        return response

    def _duration(self, timer: Timer) -> float:
        return round(timer.elapsed_seconds, self.config.duration_precision)
