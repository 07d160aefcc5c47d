"""Qdrant vector index implementation."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import exceptions as qdrant_exceptions
from qdrant_client.http import models

from gallery_search.config import Settings
from gallery_search.errors import IndexUnavailable
from gallery_search.vector.base import IndexMatch, IndexRecord, VectorIndex

logger = logging.getLogger(__name__)

# Payload key holding the caller's image id; Qdrant point ids must be UUIDs.
IMAGE_ID_KEY = "image_id"
POINT_ID_NAMESPACE = uuid.UUID("8a3c5f0e-1d8b-4c39-9a57-3f1e0b6d2c44")
SCROLL_PAGE_SIZE = 256

_QDRANT_ERRORS = (
    qdrant_exceptions.UnexpectedResponse,
    qdrant_exceptions.ResponseHandlingException,
)


def point_id_for(image_id: str) -> str:
    """Map an image id to its deterministic Qdrant point id."""
    return str(uuid.uuid5(POINT_ID_NAMESPACE, image_id))


class QdrantVectorIndex(VectorIndex):
    """Qdrant-based vector index.

    Listing uses ``scroll``, so ``list_all`` enumerates the whole collection
    instead of relying on a zero-vector query.
    """

    def __init__(
        self,
        settings: Settings,
        collection_name: str,
        vector_size: int,
        distance: models.Distance = models.Distance.COSINE,
    ) -> None:
        """Initialize the Qdrant vector index.

        Args:
            settings: Application settings with Qdrant connection info.
            collection_name: Qdrant collection name for image vectors.
            vector_size: Dimensionality of embeddings stored in the collection.
            distance: Distance metric for similarity search.
        """
        self._client = AsyncQdrantClient(
            host=settings.qdrant_host,
            port=settings.qdrant_port,
            timeout=int(settings.request_timeout_seconds),
        )
        self._collection_name = collection_name
        self._vector_size = vector_size
        self._distance = distance
        self._collection_ready = False

    @property
    def dimension(self) -> int:
        return self._vector_size

    async def upsert(self, records: list[IndexRecord]) -> None:
        """Insert or overwrite image vectors in Qdrant."""
        if not records:
            return
        for record in records:
            if not isinstance(record.id, str) or not record.id:
                raise ValueError("Vector id must be a non-empty string.")
            self._validate_vector(record.vector)

        points = [
            models.PointStruct(
                id=point_id_for(record.id),
                vector=record.vector,
                payload={**record.metadata, IMAGE_ID_KEY: record.id},
            )
            for record in records
        ]
        try:
            await self._ensure_collection()
            await self._client.upsert(
                collection_name=self._collection_name,
                points=points,
                wait=True,
            )
        except _QDRANT_ERRORS as exc:
            raise IndexUnavailable("Vector index upsert failed", detail=str(exc)) from exc

    async def query(
        self,
        vector: list[float],
        top_k: int,
        return_metadata: bool = True,
    ) -> list[IndexMatch]:
        """Search for similar vectors in Qdrant."""
        self._validate_vector(vector)
        try:
            await self._ensure_collection()
            response = await self._client.query_points(
                collection_name=self._collection_name,
                query=vector,
                limit=top_k,
                # The image id lives in the payload, so it is always fetched.
                with_payload=True,
            )
        except _QDRANT_ERRORS as exc:
            raise IndexUnavailable("Vector index query failed", detail=str(exc)) from exc

        return [
            self._to_match(point.id, point.score, point.payload, return_metadata)
            for point in response.points
        ]

    async def list_all(self) -> list[IndexMatch]:
        """Enumerate every point in the collection with ``scroll``."""
        matches: list[IndexMatch] = []
        offset: Any = None
        try:
            await self._ensure_collection()
            while True:
                points, offset = await self._client.scroll(
                    collection_name=self._collection_name,
                    limit=SCROLL_PAGE_SIZE,
                    offset=offset,
                    with_payload=True,
                    with_vectors=False,
                )
                matches.extend(
                    self._to_match(point.id, 0.0, point.payload, True)
                    for point in points
                )
                if offset is None:
                    break
        except _QDRANT_ERRORS as exc:
            raise IndexUnavailable("Vector index scan failed", detail=str(exc)) from exc
        return matches

    async def aclose(self) -> None:
        await self._client.close()

    def _to_match(
        self,
        point_id: Any,
        score: float,
        payload: dict[str, Any] | None,
        return_metadata: bool,
    ) -> IndexMatch:
        metadata = dict(payload or {})
        image_id = metadata.pop(IMAGE_ID_KEY, None) or str(point_id)
        return IndexMatch(
            id=str(image_id),
            score=score,
            metadata=metadata if return_metadata else {},
        )

    async def _ensure_collection(self) -> None:
        """Ensure the Qdrant collection exists before operations."""
        if self._collection_ready:
            return

        try:
            await self._client.get_collection(self._collection_name)
            self._collection_ready = True
            return
        except qdrant_exceptions.UnexpectedResponse as exc:
            if exc.status_code != 404:
                raise

        logger.info(
            "Creating Qdrant collection %s (size=%d)",
            self._collection_name,
            self._vector_size,
        )
        try:
            await self._client.create_collection(
                collection_name=self._collection_name,
                vectors_config=models.VectorParams(
                    size=self._vector_size,
                    distance=self._distance,
                ),
            )
        except qdrant_exceptions.UnexpectedResponse as exc:
            # 409: another request created it first.
            if exc.status_code != 409:
                raise
        self._collection_ready = True
