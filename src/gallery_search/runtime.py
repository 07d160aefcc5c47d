"""Wiring of gallery-search components from settings."""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType

from gallery_search.catalog import CatalogService
from gallery_search.config import Settings
from gallery_search.embedding.base import EmbeddingClient
from gallery_search.embedding.openai_client import OpenAIEmbeddingClient
from gallery_search.embedding.workers_ai_client import WorkersAIEmbeddingClient
from gallery_search.indexing import IndexingOrchestrator
from gallery_search.search import SearchService
from gallery_search.vector.base import VectorIndex
from gallery_search.vector.qdrant_client import QdrantVectorIndex
from gallery_search.vector.vectorize_client import VectorizeIndex


def build_embedder(settings: Settings) -> EmbeddingClient:
    """Create the configured embedding provider."""
    if settings.embedding_provider == "openai":
        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai provider.")
        return OpenAIEmbeddingClient(
            api_key=settings.openai_api_key,
            embedding_model=settings.openai_embedding_model,
            dimensions=settings.embedding_dim,
            max_retries=settings.embedding_max_retries,
            timeout=settings.request_timeout_seconds,
        )
    return WorkersAIEmbeddingClient(
        account_id=settings.cloudflare_account_id or "",
        api_token=settings.cloudflare_api_token or "",
        model=settings.workers_ai_model,
        dimensions=settings.embedding_dim,
        base_url=settings.cloudflare_api_base_url,
        timeout=settings.request_timeout_seconds,
    )


def build_index(settings: Settings) -> VectorIndex:
    """Create the configured vector index gateway."""
    if settings.vector_backend == "vectorize":
        return VectorizeIndex(
            account_id=settings.cloudflare_account_id or "",
            api_token=settings.cloudflare_api_token or "",
            index_name=settings.vectorize_index,
            dimension=settings.embedding_dim,
            base_url=settings.cloudflare_api_base_url,
            timeout=settings.request_timeout_seconds,
        )
    return QdrantVectorIndex(
        settings=settings,
        collection_name=settings.qdrant_collection,
        vector_size=settings.embedding_dim,
    )


@dataclass(slots=True)
class GalleryServices:
    """Container for the components shared by one process."""

    embedder: EmbeddingClient
    index: VectorIndex
    indexer: IndexingOrchestrator
    searcher: SearchService
    catalog: CatalogService

    @classmethod
    def from_clients(
        cls,
        embedder: EmbeddingClient,
        index: VectorIndex,
        batch_size: int = 10,
        default_limit: int = 20,
    ) -> "GalleryServices":
        """Assemble services around already-constructed clients."""
        return cls(
            embedder=embedder,
            index=index,
            indexer=IndexingOrchestrator(embedder, index, batch_size=batch_size),
            searcher=SearchService(embedder, index, default_limit=default_limit),
            catalog=CatalogService(index),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GalleryServices":
        return cls.from_clients(
            embedder=build_embedder(settings),
            index=build_index(settings),
            batch_size=settings.index_batch_size,
            default_limit=settings.search_default_limit,
        )

    async def aclose(self) -> None:
        try:
            await self.embedder.aclose()
        finally:
            await self.index.aclose()

    async def __aenter__(self) -> "GalleryServices":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
