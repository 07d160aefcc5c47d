import asyncio
import logging
from typing import Any, TypeVar

from openai import APIConnectionError, APIError, AsyncOpenAI, RateLimitError

from gallery_search.embedding.base import EmbeddingClient, check_embeddings
from gallery_search.errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OpenAIEmbeddingClient(EmbeddingClient):
    """OpenAI implementation of EmbeddingClient."""

    DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
    MAX_RETRIES = 3
    BASE_DELAY = 1.0  # Base delay in seconds for exponential backoff

    def __init__(
        self,
        api_key: str,
        embedding_model: str | None = None,
        dimensions: int = 768,
        max_retries: int | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key.
            embedding_model: Model to use for embeddings (default: text-embedding-3-small).
            dimensions: Requested embedding dimensionality.
            max_retries: Attempts for rate-limit and connection failures.
            timeout: Per-request timeout in seconds.
        """
        # SDK-level retries are disabled so backoff is governed here.
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self._embedding_model = embedding_model or self.DEFAULT_EMBEDDING_MODEL
        self._dimensions = dimensions
        self._max_retries = max_retries or self.MAX_RETRIES

    @property
    def dimension(self) -> int:
        return self._dimensions

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Args:
            texts: Texts to embed, at least one.

        Returns:
            One vector per text, in input order.

        Raises:
            EmbeddingUnavailable: If the API request fails after retries.
        """
        if not texts:
            raise ValueError("embed() requires at least one text.")

        response = await self._request_with_retry(
            self._client.embeddings.create,
            model=self._embedding_model,
            input=list(texts),
            dimensions=self._dimensions,
        )
        # The API documents ordered data but also returns explicit indexes.
        data = sorted(response.data, key=lambda item: item.index)
        try:
            return check_embeddings([item.embedding for item in data], len(texts))
        except ValueError as exc:
            raise EmbeddingUnavailable(
                "Malformed embedding response", detail=str(exc)
            ) from exc

    async def aclose(self) -> None:
        await self._client.close()

    async def _request_with_retry(
        self,
        func: Any,
        **kwargs: Any,
    ) -> T:
        """Execute an API request with exponential backoff retry.

        Args:
            func: Async function to call.
            **kwargs: Arguments to pass to the function.

        Returns:
            The result of the function call.

        Raises:
            EmbeddingUnavailable: If all retries are exhausted or the API
                rejects the request.
        """
        last_error: Exception | None = None

        for attempt in range(self._max_retries):
            try:
                return await func(**kwargs)
            except RateLimitError as e:
                last_error = e
                reason = "Rate limited"
            except APIConnectionError as e:
                last_error = e
                reason = "Connection error"
            except APIError as e:
                raise EmbeddingUnavailable(
                    "Embedding request failed", detail=str(e)
                ) from e

            if attempt + 1 >= self._max_retries:
                break
            delay = self.BASE_DELAY * (2**attempt)
            logger.warning(
                "%s (attempt %d/%d), retrying in %.1f seconds: %s",
                reason,
                attempt + 1,
                self._max_retries,
                delay,
                str(last_error),
            )
            await asyncio.sleep(delay)

        raise EmbeddingUnavailable(
            f"Embedding request failed after {self._max_retries} attempts",
            detail=str(last_error),
        ) from last_error
