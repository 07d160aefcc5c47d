from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Embedding provider
    embedding_provider: Literal["openai", "workers_ai"] = "workers_ai"
    embedding_dim: int = Field(default=768, ge=1)
    embedding_max_retries: int = Field(default=3, ge=1, le=10)

    # OpenAI
    openai_api_key: str | None = None
    openai_embedding_model: str = "text-embedding-3-small"

    # Cloudflare (Workers AI + Vectorize)
    cloudflare_account_id: str | None = None
    cloudflare_api_token: str | None = None
    cloudflare_api_base_url: str = "https://api.cloudflare.com/client/v4"
    workers_ai_model: str = "@cf/baai/bge-base-en-v1.5"
    vectorize_index: str = "gallery-embeddings"

    # Vector index backend
    vector_backend: Literal["qdrant", "vectorize"] = "qdrant"
    qdrant_host: str = "localhost"
    qdrant_port: int = 6333
    qdrant_collection: str = "gallery_images"

    # Indexing and search
    index_batch_size: int = Field(default=10, ge=1, le=100)
    search_default_limit: int = Field(default=20, ge=1, le=100)
    request_timeout_seconds: float = Field(default=30.0, gt=0)

    # HTTP boundary
    allowed_origins: str = "*"
    admin_api_key: str | None = None

    # Tag sync
    sync_endpoint: str = "http://localhost:8787"
    sync_output_path: str = "data/gallery-tags.json"

    # Logging
    log_level: str = "INFO"

    @property
    def allowed_origin_list(self) -> list[str]:
        """Split ``allowed_origins`` into a clean list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]
