"""Cloudflare Vectorize index implementation over the REST API."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from gallery_search.errors import IndexUnavailable
from gallery_search.vector.base import IndexMatch, IndexRecord, VectorIndex

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.cloudflare.com/client/v4"
# Largest topK the query endpoint accepts.
LIST_TOP_K = 100


class VectorizeIndex(VectorIndex):
    """Vectorize-backed gateway.

    Vectorize has no enumeration endpoint, so ``list_all`` is a zero-vector
    query capped at ``LIST_TOP_K`` records.
    """

    def __init__(
        self,
        account_id: str,
        api_token: str,
        index_name: str,
        dimension: int = 768,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Vectorize gateway.

        Args:
            account_id: Cloudflare account identifier.
            api_token: API token with Vectorize permissions.
            index_name: Name of the Vectorize index.
            dimension: Vector length the index was created with.
            base_url: Cloudflare API base URL.
            timeout: Per-request timeout in seconds.
            client: Optional preconfigured HTTP client (used by tests).
        """
        if not account_id or not api_token:
            raise ValueError("Vectorize requires an account id and an API token.")
        self._dimension = dimension
        self._index_name = index_name
        self._url = (
            f"{base_url.rstrip('/')}/accounts/{account_id}"
            f"/vectorize/v2/indexes/{index_name}"
        )
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"Authorization": f"Bearer {api_token}"}

    @property
    def dimension(self) -> int:
        return self._dimension

    async def upsert(self, records: list[IndexRecord]) -> None:
        """Upsert records as one NDJSON request."""
        if not records:
            return
        for record in records:
            self._validate_vector(record.vector)

        lines = [
            json.dumps(
                {"id": record.id, "values": record.vector, "metadata": record.metadata}
            )
            for record in records
        ]
        await self._post(
            "upsert",
            content="\n".join(lines).encode("utf-8"),
            headers={"Content-Type": "application/x-ndjson"},
        )

    async def query(
        self,
        vector: list[float],
        top_k: int,
        return_metadata: bool = True,
    ) -> list[IndexMatch]:
        """Query Vectorize for nearest neighbours."""
        self._validate_vector(vector)
        body = await self._post(
            "query",
            json={
                "vector": vector,
                "topK": top_k,
                "returnMetadata": "all" if return_metadata else "none",
                "returnValues": False,
            },
        )
        try:
            matches = body["result"]["matches"]
            return [
                IndexMatch(
                    id=str(match["id"]),
                    score=float(match.get("score", 0.0)),
                    metadata=dict(match.get("metadata") or {}),
                )
                for match in matches
            ]
        except (KeyError, TypeError, ValueError) as exc:
            raise IndexUnavailable(
                "Malformed vector index response", detail=str(exc)
            ) from exc

    async def list_all(self) -> list[IndexMatch]:
        """List up to ``LIST_TOP_K`` records.

        Vectorize caps ``topK`` at 100 and lowers it further when metadata is
        returned, so the zero-vector query fetches ids only and metadata is
        read with ``get_by_ids``. Indexes larger than ``LIST_TOP_K`` are
        listed partially.
        """
        matches = await self.query(
            [0.0] * self._dimension, top_k=LIST_TOP_K, return_metadata=False
        )
        if not matches:
            return []
        body = await self._post("get_by_ids", json={"ids": [m.id for m in matches]})
        try:
            metadata_by_id = {
                str(vector["id"]): dict(vector.get("metadata") or {})
                for vector in body["result"]
            }
        except (KeyError, TypeError, ValueError) as exc:
            raise IndexUnavailable(
                "Malformed vector index response", detail=str(exc)
            ) from exc
        return [
            IndexMatch(id=m.id, score=m.score, metadata=metadata_by_id.get(m.id, {}))
            for m in matches
        ]

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        headers = {**self._headers, **kwargs.pop("headers", {})}
        try:
            response = await self._client.post(
                f"{self._url}/{operation}", headers=headers, **kwargs
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Vectorize %s on index %s returned %s",
                operation,
                self._index_name,
                exc.response.status_code,
            )
            raise IndexUnavailable(
                f"Vector index {operation} failed",
                detail={"status": exc.response.status_code},
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise IndexUnavailable(
                f"Vector index {operation} failed", detail=str(exc)
            ) from exc

        if not isinstance(body, dict) or body.get("success") is False:
            errors = body.get("errors") if isinstance(body, dict) else None
            raise IndexUnavailable(f"Vector index {operation} failed", detail=errors)
        return body
