"""Vector search contract and a deterministic in-process index."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from hashlib import blake2b
from math import sqrt
from typing import Protocol

from job_router.types import JobRecord, SearchHit

_TOKEN_PATTERN = re.compile(r"[a-z0-9#+.]+")


class VectorSearch(Protocol):
    """Semantic search collaborator; only the ranked ids are consumed."""

    def search(self, text: str) -> list[SearchHit]:
        """Return candidates ordered by relevance."""


@dataclass(slots=True)
class _IndexedJob:
    job_id: int
    embedding: list[float]


class JobVectorIndex:
    """Hashing-embedding index over job postings.

    Each job is embedded from its title, company, tags and description with a
    signed feature-hashing trick, so ranking is deterministic and needs no
    external model. Swap in a hosted vector engine behind `VectorSearch` for
    production-quality relevance.
    """

    def __init__(self, *, dimension: int = 256, top_k: int = 20, min_score: float = 0.05) -> None:
        self.dimension = dimension
        self.top_k = top_k
        self.min_score = min_score
        self._entries: dict[int, _IndexedJob] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def index(self, records: Iterable[JobRecord]) -> None:
        for record in records:
            self._entries[record.id] = _IndexedJob(
                job_id=record.id,
                embedding=self.embed(_document_text(record)),
            )

    def search(self, text: str) -> list[SearchHit]:
        query = self.embed(text)
        scored = (
            SearchHit(id=entry.job_id, score=_cosine_similarity(query, entry.embedding))
            for entry in self._entries.values()
        )
        ranked = sorted(
            (hit for hit in scored if hit.score >= self.min_score and hit.score > 0.0),
            key=lambda hit: hit.score,
            reverse=True,
        )
        return ranked[: self.top_k]

    def embed(self, text: str) -> list[float]:
        vector = [0.0 for _ in range(self.dimension)]
        tokens = [token.strip(".") for token in _TOKEN_PATTERN.findall(text.lower())]
        tokens = [token for token in tokens if token]
        if not tokens:
            return vector

        for token in tokens:
            digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
            idx = int.from_bytes(digest[:4], "little") % self.dimension
            sign = -1.0 if digest[4] % 2 else 1.0
            vector[idx] += sign

        norm = sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]


def _document_text(record: JobRecord) -> str:
    return " ".join(
        [record.title, record.company_name, " ".join(sorted(record.tag_names)), record.description]
    )


def _cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return numerator / (norm_a * norm_b)
