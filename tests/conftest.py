from __future__ import annotations

import math
from pathlib import Path

import pytest

from gallery_search.embedding.base import EmbeddingClient
from gallery_search.errors import EmbeddingUnavailable
from gallery_search.vector.base import IndexMatch, IndexRecord, VectorIndex

try:
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover - optional in environments without dev deps
    load_dotenv = None

FAKE_DIM = 8


def pytest_configure() -> None:
    """Load .env without overriding existing env vars."""
    if load_dotenv is None:
        return

    repo_root = Path(__file__).resolve().parents[1]
    load_dotenv(repo_root / ".env", override=False)


class FakeEmbeddingClient(EmbeddingClient):
    """Bag-of-words embedder: each word bumps one bucket of the vector."""

    def __init__(self, dimension: int = FAKE_DIM) -> None:
        self._dimension = dimension
        self.calls: list[list[str]] = []
        self.fail_on_call: int | None = None
        self.closed = False

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            raise ValueError("embed() requires at least one text.")
        self.calls.append(list(texts))
        if self.fail_on_call == len(self.calls):
            raise EmbeddingUnavailable("Embedding request failed")
        return [self._vector(text) for text in texts]

    async def aclose(self) -> None:
        self.closed = True

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        for word in text.lower().replace(".", " ").split():
            vector[sum(ord(ch) for ch in word) % self._dimension] += 1.0
        return vector


class InMemoryVectorIndex(VectorIndex):
    """Dict-backed index ranking by cosine similarity.

    ``list_all`` is inherited, so it exercises the zero-vector listing.
    """

    def __init__(self, dimension: int = FAKE_DIM) -> None:
        self._dimension = dimension
        self.records: dict[str, IndexRecord] = {}
        self.upsert_calls: list[list[str]] = []
        self.query_calls: list[tuple[list[float], int]] = []
        self.closed = False

    @property
    def dimension(self) -> int:
        return self._dimension

    async def upsert(self, records: list[IndexRecord]) -> None:
        for record in records:
            self._validate_vector(record.vector)
        self.upsert_calls.append([record.id for record in records])
        for record in records:
            self.records[record.id] = IndexRecord(
                id=record.id, vector=list(record.vector), metadata=dict(record.metadata)
            )

    async def query(
        self,
        vector: list[float],
        top_k: int,
        return_metadata: bool = True,
    ) -> list[IndexMatch]:
        self._validate_vector(vector)
        self.query_calls.append((list(vector), top_k))
        scored = [
            IndexMatch(
                id=record.id,
                score=_cosine(vector, record.vector),
                metadata=dict(record.metadata) if return_metadata else {},
            )
            for record in self.records.values()
        ]
        scored.sort(key=lambda match: match.score, reverse=True)
        return scored[:top_k]

    async def aclose(self) -> None:
        self.closed = True


def _cosine(a: list[float], b: list[float]) -> float:
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(x * x for x in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return sum(x * y for x, y in zip(a, b)) / (norm_a * norm_b)


@pytest.fixture
def embedder() -> FakeEmbeddingClient:
    """Deterministic in-memory embedding provider."""
    return FakeEmbeddingClient()


@pytest.fixture
def index() -> InMemoryVectorIndex:
    """In-memory vector index."""
    return InMemoryVectorIndex()
