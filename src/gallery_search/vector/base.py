"""Vector index interfaces and data models."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from gallery_search.errors import DimensionMismatch

# Upper bound for the zero-vector listing query.
LIST_ALL_TOP_K = 10000


@dataclass
class IndexRecord:
    """A vector and its metadata, keyed by the image id."""

    id: str
    vector: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class IndexMatch:
    """A single result from an index query."""

    id: str
    score: float
    metadata: dict[str, Any]


class VectorIndex(ABC):
    """Abstract gateway to the persisted vector index.

    Contract:
        Record ids are the caller-supplied image ids. ``upsert`` overwrites
        by id with no field merging. Store failures are raised as
        ``IndexUnavailable``.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Vector length the index is configured for."""
        ...

    @abstractmethod
    async def upsert(self, records: list[IndexRecord]) -> None:
        """Insert or overwrite records in a single store call.

        Args:
            records: Records to write. Every vector must match ``dimension``.
        """
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int,
        return_metadata: bool = True,
    ) -> list[IndexMatch]:
        """Return up to ``top_k`` nearest neighbours, most similar first.

        Args:
            vector: Query vector.
            top_k: Maximum number of matches.
            return_metadata: Whether to include stored metadata.

        Returns:
            Matches in the store's ranking order.
        """
        ...

    async def list_all(self) -> list[IndexMatch]:
        """Return every record the index can reach.

        The default queries with a zero vector and a large ``top_k``. This is
        an approximation: indexes with more than ``LIST_ALL_TOP_K`` records,
        or stores that do not treat a zero vector as an unordered scan, will
        return a subset. Backends that can enumerate should override this.
        """
        return await self.query(
            [0.0] * self.dimension, top_k=LIST_ALL_TOP_K, return_metadata=True
        )

    async def aclose(self) -> None:
        """Release network resources held by the gateway."""
        return None

    def _validate_vector(self, vector: list[float]) -> None:
        """Validate vector dimensionality."""
        if len(vector) != self.dimension:
            raise DimensionMismatch(
                "Embedding size does not match index vector size: "
                f"{len(vector)} != {self.dimension}"
            )
