"""Hybrid job-search chat router package."""

from .config import LLMConfig, RetrievalConfig, ServiceConfig

__all__ = ["LLMConfig", "RetrievalConfig", "ServiceConfig"]
