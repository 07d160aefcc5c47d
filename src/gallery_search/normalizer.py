"""Canonical image metadata and embedding text.

Request bodies accept ``tags`` either as a list or as a comma-joined string.
Everything downstream of :func:`normalize` sees only :class:`ImageMetadata`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

from gallery_search.errors import MissingId, NoEmbeddableText

TEXT_SEPARATOR = ". "


@dataclass(frozen=True)
class ImageMetadata:
    """Metadata stored alongside each image vector."""

    tags: list[str] = field(default_factory=list)
    alt: str = ""
    caption: str = ""
    project: str = ""
    src: str = ""
    thumb: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NormalizedImage:
    """Result of normalizing one raw image description."""

    text: str
    metadata: ImageMetadata


def split_tags(value: str) -> list[str]:
    """Split a comma-joined tag string into trimmed, non-empty tags."""
    return [part.strip() for part in value.split(",") if part.strip()]


def normalize_tags(raw: Any) -> list[str]:
    """Normalize the raw ``tags`` field.

    Lists are kept verbatim (no trimming, no dedup). Strings are split on
    commas. Anything missing becomes an empty list.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        return split_tags(raw)
    if isinstance(raw, (list, tuple)):
        return [tag if isinstance(tag, str) else str(tag) for tag in raw]
    return split_tags(str(raw))


def _text_field(raw: Mapping[str, Any], name: str) -> str:
    value = raw.get(name)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def build_embedding_text(metadata: ImageMetadata) -> str:
    """Concatenate caption, alt, tags and project, skipping blank parts."""
    parts = [
        metadata.caption,
        metadata.alt,
        " ".join(metadata.tags),
        metadata.project,
    ]
    return TEXT_SEPARATOR.join(part for part in parts if part.strip())


def normalize(raw: Mapping[str, Any]) -> NormalizedImage:
    """Build canonical metadata and the text to embed.

    Raises:
        NoEmbeddableText: If caption, alt, tags and project are all empty.
    """
    metadata = ImageMetadata(
        tags=normalize_tags(raw.get("tags")),
        alt=_text_field(raw, "alt"),
        caption=_text_field(raw, "caption"),
        project=_text_field(raw, "project"),
        src=_text_field(raw, "src"),
        thumb=_text_field(raw, "thumb"),
    )
    text = build_embedding_text(metadata)
    if not text.strip():
        raise NoEmbeddableText(detail={"id": raw.get("id")})
    return NormalizedImage(text=text, metadata=metadata)


def require_id(raw: Mapping[str, Any]) -> str:
    """Return the caller-supplied image id.

    Integer ids are accepted and converted to strings.

    Raises:
        MissingId: If ``id`` is absent, blank, or neither a string nor an int.
    """
    value = raw.get("id")
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        raise MissingId()
    return value.strip()
