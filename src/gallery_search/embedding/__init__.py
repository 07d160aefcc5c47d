"""Embedding providers and interfaces."""

from gallery_search.embedding.base import EmbeddingClient
from gallery_search.embedding.openai_client import OpenAIEmbeddingClient
from gallery_search.embedding.workers_ai_client import WorkersAIEmbeddingClient

__all__ = ["EmbeddingClient", "OpenAIEmbeddingClient", "WorkersAIEmbeddingClient"]
