from abc import ABC, abstractmethod


class EmbeddingClient(ABC):
    """Abstract interface for text embedding providers.

    Contract:
        ``embed`` returns exactly one vector per input text, in input order.
        Provider failures are raised as ``EmbeddingUnavailable``; callers do
        not retry.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of every vector this client produces."""
        ...

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Args:
            texts: Non-empty list of texts to embed.

        Returns:
            One vector per input text, order-preserving.

        Raises:
            ValueError: If ``texts`` is empty.
            EmbeddingUnavailable: If the model call fails.
        """
        ...

    async def embed_one(self, text: str) -> list[float]:
        """Generate the embedding vector for a single text."""
        vectors = await self.embed([text])
        return vectors[0]

    async def aclose(self) -> None:
        """Release network resources held by the client."""
        return None


def check_embeddings(
    vectors: list[list[float]], expected_count: int
) -> list[list[float]]:
    """Validate that a provider answered with one vector per input."""
    if len(vectors) != expected_count:
        raise ValueError(
            "Embedding response size does not match request size: "
            f"{len(vectors)} != {expected_count}"
        )
    return vectors
