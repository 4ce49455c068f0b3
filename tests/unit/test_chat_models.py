from job_router.agent.llm import create_chat_model
from job_router.agent.synthesizer import AnswerSynthesizer
from job_router.api.main import build_orchestrator
from job_router.config import LLMConfig, RetrievalConfig, ServiceConfig
from job_router.obs.tracing import TraceStore
from job_router.retrieval.job_store import InMemoryJobStore


def _orchestrator(llm_config: LLMConfig):
    return build_orchestrator(
        llm_config=llm_config,
        retrieval_config=RetrievalConfig(),
        service_config=ServiceConfig(),
        store=InMemoryJobStore(),
        trace_store=TraceStore(),
    )


def test_router_runs_cold_and_answers_run_warmer() -> None:
    orchestrator = _orchestrator(LLMConfig(api_key="test-key"))

    router_llm = orchestrator.router.llm
    assert isinstance(orchestrator.synthesizer, AnswerSynthesizer)
    answer_llm = orchestrator.synthesizer.llm
    assert router_llm.temperature == 0.0
    assert answer_llm.temperature == 0.8
    assert answer_llm.temperature > router_llm.temperature


def test_chat_model_is_bounded_and_never_retries() -> None:
    config = LLMConfig(api_key="test-key", timeout_seconds=2.5, model="llama-3.1-8b-instant")

    llm = create_chat_model(config, temperature=0.0)

    assert llm.max_retries == 0
    assert llm.request_timeout == 2.5
    assert llm.model_name == "llama-3.1-8b-instant"


def test_no_key_means_no_model_and_offline_answers() -> None:
    assert create_chat_model(LLMConfig(), temperature=0.0) is None

    orchestrator = _orchestrator(LLMConfig())

    assert orchestrator.router.llm is None
    assert not isinstance(orchestrator.synthesizer, AnswerSynthesizer)
