"""Configuration models for the chat router."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

_DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
_DEFAULT_MODEL = "llama-3.1-8b-instant"


class LLMConfig(BaseModel):
    """Configures the OpenAI-compatible completion endpoint.

    The router call runs at `router_temperature` (deterministic JSON), the
    answer call at `answer_temperature`. Every call is bounded by
    `timeout_seconds` and is never retried.
    """

    api_key: str | None = None
    base_url: str = _DEFAULT_BASE_URL
    model: str = _DEFAULT_MODEL
    router_temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    answer_temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=5.0, gt=0.0)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "LLMConfig":
        return cls(
            api_key=os.getenv("JOB_ROUTER_LLM_API_KEY") or os.getenv("GROQ_API_KEY"),
            base_url=os.getenv("JOB_ROUTER_LLM_BASE_URL", _DEFAULT_BASE_URL),
            model=os.getenv("JOB_ROUTER_LLM_MODEL", _DEFAULT_MODEL),
            timeout_seconds=float(os.getenv("JOB_ROUTER_LLM_TIMEOUT", "5.0")),
        )


class RetrievalConfig(BaseModel):
    """Configures decision defaults and context rendering."""

    default_limit: int = Field(default=5, ge=1)
    fallback_limit: int = Field(default=15, ge=1)
    max_limit: int = Field(default=20, ge=1)
    description_chars: int = Field(default=600, ge=10)
    currency_suffix: str = " EGP"
    semantic_top_k: int = Field(default=20, ge=1)
    semantic_min_score: float = Field(default=0.05, ge=0.0, le=1.0)


class ServiceConfig(BaseModel):
    """Process-level settings for the HTTP service."""

    db_path: str | None = None
    log_level: str = "INFO"
    duration_precision: int = Field(default=4, ge=0, le=9)

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        return cls(
            db_path=os.getenv("JOB_ROUTER_DB_PATH") or None,
            log_level=os.getenv("JOB_ROUTER_LOG_LEVEL", "INFO").upper(),
        )
