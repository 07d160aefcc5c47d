"""Vector index implementations and interfaces."""

from gallery_search.vector.base import IndexMatch, IndexRecord, VectorIndex
from gallery_search.vector.qdrant_client import QdrantVectorIndex
from gallery_search.vector.vectorize_client import VectorizeIndex

__all__ = [
    "IndexMatch",
    "IndexRecord",
    "QdrantVectorIndex",
    "VectorIndex",
    "VectorizeIndex",
]
