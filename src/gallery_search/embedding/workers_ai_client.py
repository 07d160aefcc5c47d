"""Cloudflare Workers AI embedding client."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from gallery_search.embedding.base import EmbeddingClient, check_embeddings
from gallery_search.errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.cloudflare.com/client/v4"
DEFAULT_MODEL = "@cf/baai/bge-base-en-v1.5"


class WorkersAIEmbeddingClient(EmbeddingClient):
    """Embeds text through the Workers AI ``run`` endpoint.

    The model is invoked as ``run(model, {"text": [...]})`` and answers with
    ``{"result": {"data": [[...], ...]}}``.
    """

    def __init__(
        self,
        account_id: str,
        api_token: str,
        model: str = DEFAULT_MODEL,
        dimensions: int = 768,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Workers AI client.

        Args:
            account_id: Cloudflare account identifier.
            api_token: API token with Workers AI permissions.
            model: Embedding model identifier.
            dimensions: Vector length produced by ``model``.
            base_url: Cloudflare API base URL.
            timeout: Per-request timeout in seconds.
            client: Optional preconfigured HTTP client (used by tests).
        """
        if not account_id or not api_token:
            raise ValueError("Workers AI requires an account id and an API token.")
        self._model = model
        self._dimensions = dimensions
        self._url = f"{base_url.rstrip('/')}/accounts/{account_id}/ai/run/{model}"
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"Authorization": f"Bearer {api_token}"}

    @property
    def dimension(self) -> int:
        return self._dimensions

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Run the embedding model over ``texts`` in one request."""
        if not texts:
            raise ValueError("embed() requires at least one text.")

        body = await self._run({"text": list(texts)})
        try:
            vectors = body["result"]["data"]
            return check_embeddings([list(v) for v in vectors], len(texts))
        except (KeyError, TypeError, ValueError) as exc:
            raise EmbeddingUnavailable(
                "Malformed embedding response", detail=str(exc)
            ) from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _run(self, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(
                self._url, json=payload, headers=self._headers
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Workers AI returned %s for model %s",
                exc.response.status_code,
                self._model,
            )
            raise EmbeddingUnavailable(
                "Embedding request failed",
                detail={"status": exc.response.status_code},
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise EmbeddingUnavailable(
                "Embedding request failed", detail=str(exc)
            ) from exc

        if not isinstance(body, dict) or body.get("success") is False:
            errors = body.get("errors") if isinstance(body, dict) else None
            raise EmbeddingUnavailable("Embedding request failed", detail=errors)
        return body
