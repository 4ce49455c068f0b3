"""FastAPI entrypoint for chat, health and trace endpoints."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response
from pydantic import BaseModel, ConfigDict, Field

from job_router.agent.fallback import ContextEchoSynthesizer
from job_router.agent.intents import LocalIntentMatcher
from job_router.agent.llm import create_chat_model
from job_router.agent.orchestrator import ChatOrchestrator
from job_router.agent.router import RouterClient
from job_router.agent.synthesizer import AnswerSynthesizer, Synthesizer
from job_router.config import LLMConfig, RetrievalConfig, ServiceConfig
from job_router.exceptions import RetrievalError
from job_router.obs.log import configure_logging
from job_router.obs.tracing import TraceStore
from job_router.retrieval.dispatcher import RetrievalDispatcher
from job_router.retrieval.job_store import InMemoryJobStore, JobStore, SqliteJobStore
from job_router.retrieval.vector_search import JobVectorIndex
from job_router.types import ChatResponse

logger = logging.getLogger(__name__)

_DISCONNECT_POLL_SECONDS = 0.25
_CLIENT_CLOSED_REQUEST = 499


class ChatRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    question: str = Field(min_length=1, max_length=1000)


class ChatReply(BaseModel):
    answer: str
    actions: list[dict[str, Any]] = Field(default_factory=list)
    duration: float
    duration_seconds: float


def _create_store(config: ServiceConfig, retrieval_config: RetrievalConfig) -> JobStore:
    if not config.db_path:
        return InMemoryJobStore(currency_suffix=retrieval_config.currency_suffix)
    store = SqliteJobStore(config.db_path, currency_suffix=retrieval_config.currency_suffix)
    store.initialize()
    return store


def build_orchestrator(
    *,
    llm_config: LLMConfig,
    retrieval_config: RetrievalConfig,
    service_config: ServiceConfig,
    store: JobStore,
    trace_store: TraceStore,
) -> ChatOrchestrator:
    index = JobVectorIndex(
        top_k=retrieval_config.semantic_top_k,
        min_score=retrieval_config.semantic_min_score,
    )
    index.index(store.all_jobs())

    router_llm = create_chat_model(llm_config, temperature=llm_config.router_temperature)
    answer_llm = create_chat_model(llm_config, temperature=llm_config.answer_temperature)
    synthesizer: Synthesizer = (
        AnswerSynthesizer(answer_llm, llm_config=llm_config)
        if answer_llm is not None
        else ContextEchoSynthesizer()
    )

    return ChatOrchestrator(
        matcher=LocalIntentMatcher(),
        router=RouterClient(router_llm, llm_config=llm_config, retrieval_config=retrieval_config),
        dispatcher=RetrievalDispatcher(store, index, retrieval_config),
        synthesizer=synthesizer,
        trace_store=trace_store,
        config=service_config,
    )


def create_app(
    *,
    orchestrator: ChatOrchestrator | None = None,
    llm_config: LLMConfig | None = None,
    retrieval_config: RetrievalConfig | None = None,
    service_config: ServiceConfig | None = None,
) -> FastAPI:
    llm_config = llm_config or LLMConfig.from_env()
    retrieval_config = retrieval_config or RetrievalConfig()
    service_config = service_config or ServiceConfig.from_env()
    configure_logging(service_config.log_level)

    if orchestrator is None:
        orchestrator = build_orchestrator(
            llm_config=llm_config,
            retrieval_config=retrieval_config,
            service_config=service_config,
            store=_create_store(service_config, retrieval_config),
            trace_store=TraceStore(),
        )
    trace_store = orchestrator.trace_store

    app = FastAPI(title="Job Chat Router", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "llm_configured": llm_config.configured,
            "synthesizer_mode": (
                "llm" if isinstance(orchestrator.synthesizer, AnswerSynthesizer) else "context_echo"
            ),
            "job_count": len(orchestrator.dispatcher.store.all_jobs()),
        }

    @app.post("/chat", response_model=ChatReply)
    async def chat(payload: ChatRequest, request: Request) -> Any:
        try:
            response = await _answer_until_disconnect(orchestrator, payload.question, request)
        except RetrievalError as exc:
            raise HTTPException(
                status_code=500, detail="Job search is temporarily unavailable."
            ) from exc
        if response is None:
            return Response(status_code=_CLIENT_CLOSED_REQUEST)
        return response.to_payload()

    @app.get("/traces")
    def traces(limit: int = 20) -> dict[str, Any]:
        records = [asdict(record) for record in trace_store.list_recent(limit=limit)]
        return {"items": records}

    @app.get("/traces/{trace_id}")
    def trace_detail(trace_id: str) -> dict[str, Any]:
        try:
            record = trace_store.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @app.get("/metrics")
    def metrics() -> dict[str, Any]:
        return trace_store.summary()

    return app


async def _answer_until_disconnect(
    orchestrator: ChatOrchestrator, question: str, request: Request
) -> ChatResponse | None:
    """Run the pipeline, cancelling it if the client goes away.

    Cancelling the task also cancels any in-flight completion call.
    """
    task = asyncio.create_task(orchestrator.answer(question))
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=_DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("Client disconnected; abandoning in-flight answer")
                return None
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


app = create_app()
