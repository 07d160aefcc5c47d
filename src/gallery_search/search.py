"""Free-text semantic search over the image index."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from gallery_search.embedding.base import EmbeddingClient
from gallery_search.errors import InvalidQuery
from gallery_search.vector.base import VectorIndex

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass
class SearchResult:
    """A ranked search hit."""

    id: str
    score: float
    metadata: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "score": self.score, "metadata": self.metadata}


def clamp_limit(limit: int) -> int:
    """Clamp a requested result count to ``1..MAX_LIMIT``."""
    return max(1, min(limit, MAX_LIMIT))


class SearchService:
    """Embeds queries and ranks indexed images against them."""

    def __init__(
        self,
        embedder: EmbeddingClient,
        index: VectorIndex,
        default_limit: int = DEFAULT_LIMIT,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._default_limit = default_limit

    async def search(self, query: Any, limit: Any = None) -> list[SearchResult]:
        """Return images ranked by similarity to ``query``.

        Args:
            query: Natural-language query.
            limit: Requested number of results; clamped to ``1..100``.

        Returns:
            Results in descending similarity. An empty list is a valid answer.

        Raises:
            InvalidQuery: If ``query`` is not a non-empty string or ``limit``
                is not an integer.
        """
        if not isinstance(query, str) or not query.strip():
            raise InvalidQuery()
        if limit is None:
            limit = self._default_limit
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise InvalidQuery('"limit" must be an integer')

        top_k = clamp_limit(limit)
        vector = await self._embedder.embed_one(query)
        matches = await self._index.query(vector, top_k=top_k, return_metadata=True)
        logger.debug("Query %r returned %d matches", query, len(matches))
        return [
            SearchResult(id=match.id, score=match.score, metadata=match.metadata)
            for match in matches
        ]
