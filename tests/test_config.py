import pytest
from pydantic import ValidationError

from gallery_search.config import Settings

_ENV_VARS = (
    "EMBEDDING_PROVIDER",
    "EMBEDDING_DIM",
    "VECTOR_BACKEND",
    "QDRANT_HOST",
    "QDRANT_PORT",
    "QDRANT_COLLECTION",
    "INDEX_BATCH_SIZE",
    "SEARCH_DEFAULT_LIMIT",
    "ALLOWED_ORIGINS",
    "ADMIN_API_KEY",
    "WORKERS_AI_MODEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def test_settings_defaults() -> None:
    """Default values are applied when optional vars are not set."""
    settings = Settings(_env_file=None)

    assert settings.embedding_provider == "workers_ai"
    assert settings.embedding_dim == 768
    assert settings.workers_ai_model == "@cf/baai/bge-base-en-v1.5"
    assert settings.vector_backend == "qdrant"
    assert settings.qdrant_host == "localhost"
    assert settings.qdrant_port == 6333
    assert settings.qdrant_collection == "gallery_images"
    assert settings.index_batch_size == 10
    assert settings.search_default_limit == 20
    assert settings.admin_api_key is None
    assert settings.allowed_origin_list == ["*"]


def test_settings_overrides_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Environment variables override default values."""
    monkeypatch.setenv("EMBEDDING_PROVIDER", "openai")
    monkeypatch.setenv("EMBEDDING_DIM", "384")
    monkeypatch.setenv("VECTOR_BACKEND", "vectorize")
    monkeypatch.setenv("QDRANT_PORT", "6334")
    monkeypatch.setenv("INDEX_BATCH_SIZE", "25")
    monkeypatch.setenv("ADMIN_API_KEY", "secret")

    settings = Settings(_env_file=None)

    assert settings.embedding_provider == "openai"
    assert settings.embedding_dim == 384
    assert settings.vector_backend == "vectorize"
    assert settings.qdrant_port == 6334
    assert settings.index_batch_size == 25
    assert settings.admin_api_key == "secret"


def test_allowed_origin_list_is_split_and_trimmed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(
        "ALLOWED_ORIGINS", "https://gallery.example.com, http://localhost:3000 ,"
    )

    settings = Settings(_env_file=None)

    assert settings.allowed_origin_list == [
        "https://gallery.example.com",
        "http://localhost:3000",
    ]


@pytest.mark.parametrize("value", ["0", "101"])
def test_batch_size_out_of_range_raises(
    monkeypatch: pytest.MonkeyPatch, value: str
) -> None:
    monkeypatch.setenv("INDEX_BATCH_SIZE", value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_unknown_backend_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VECTOR_BACKEND", "pinecone")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
