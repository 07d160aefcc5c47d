"""Semantic gallery search: embeddings, vector index sync and retrieval."""

__version__ = "0.1.0"
