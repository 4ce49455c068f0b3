"""Per-request tracing and latency summaries."""

from __future__ import annotations

import time
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from job_router.types import RouteDecision, ToolTrace

LOCAL_PATH = "local_intent"
RETRIEVAL_PATH = "retrieval"


@dataclass(slots=True)
class TraceRecord:
    trace_id: str
    timestamp_utc: str
    question: str
    answer: str
    path: str
    intent: str | None
    decision: dict[str, Any] | None
    tool_traces: list[ToolTrace] = field(default_factory=list)
    duration_seconds: float = 0.0


class TraceStore:
    """In-memory trace storage for API-level observability.

    Only the most recent `capacity` records are kept.
    """

    def __init__(self, capacity: int = 1000) -> None:
        self._records: dict[str, TraceRecord] = {}
        self._capacity = capacity

    def create_record(
        self,
        *,
        question: str,
        answer: str,
        path: str,
        duration_seconds: float,
        intent: str | None = None,
        decision: RouteDecision | None = None,
        tool_traces: list[ToolTrace] | None = None,
    ) -> TraceRecord:
        trace_id = str(uuid.uuid4())
        record = TraceRecord(
            trace_id=trace_id,
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            question=question,
            answer=answer,
            path=path,
            intent=intent,
            decision=decision.to_payload() if decision is not None else None,
            tool_traces=list(tool_traces or []),
            duration_seconds=duration_seconds,
        )
        self._records[trace_id] = record
        while len(self._records) > self._capacity:
            del self._records[next(iter(self._records))]
        return record

    def get(self, trace_id: str) -> TraceRecord:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[TraceRecord]:
        if limit <= 0:
            return []
        return list(self._records.values())[-limit:]

    def summary(self) -> dict[str, Any]:
        """Aggregate routing and latency metrics for dashboard display."""
        records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "local_hits": 0,
                "tool_counts": {},
                "avg_duration_seconds": 0.0,
                "p95_duration_seconds": 0.0,
            }

        durations = sorted(record.duration_seconds for record in records)
        p95_index = max(0, int((len(durations) * 0.95) - 1))
        tool_counts = Counter(
            record.decision["tool"] for record in records if record.decision is not None
        )

        return {
            "total_requests": total,
            "local_hits": sum(1 for record in records if record.path == LOCAL_PATH),
            "tool_counts": dict(tool_counts),
            "avg_duration_seconds": sum(durations) / total,
            "p95_duration_seconds": durations[p95_index],
        }


class Timer:
    """Wall-clock timer started at request entry."""

    def __init__(self) -> None:
        self._start = time.perf_counter()

    @property
    def elapsed_seconds(self) -> float:
        return time.perf_counter() - self._start

    def elapsed_ms(self) -> float:
        return self.elapsed_seconds * 1000.0
