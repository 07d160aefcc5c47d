"""Tag and image listings derived from the whole index."""

from __future__ import annotations

from typing import Any

from gallery_search.normalizer import split_tags
from gallery_search.vector.base import VectorIndex


def _record_tags(metadata: dict[str, Any]) -> list[str]:
    tags = metadata.get("tags")
    if isinstance(tags, (list, tuple)):
        return [str(tag) for tag in tags]
    # Records written by older clients may hold a comma-joined string.
    if isinstance(tags, str):
        return split_tags(tags)
    return []


class CatalogService:
    """Builds catalog views from ``VectorIndex.list_all``."""

    def __init__(self, index: VectorIndex) -> None:
        self._index = index

    async def list_tags(self) -> list[str]:
        """Return the distinct tags of every indexed image, sorted."""
        tag_set: set[str] = set()
        for match in await self._index.list_all():
            tag_set.update(_record_tags(match.metadata))
        return sorted(tag_set)

    async def list_images(self) -> list[dict[str, Any]]:
        """Return ``{id, **metadata}`` for every image, in store order."""
        return [
            {"id": match.id, **match.metadata}
            for match in await self._index.list_all()
        ]
