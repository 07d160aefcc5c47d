"""Unit tests for VectorizeIndex with a mocked transport."""

import json

import httpx
import pytest

from gallery_search.errors import DimensionMismatch, IndexUnavailable
from gallery_search.vector.base import IndexRecord
from gallery_search.vector.vectorize_client import LIST_TOP_K, VectorizeIndex


class _Recorder:
    def __init__(self, body: dict | None = None, status: int = 200) -> None:
        self.requests: list[httpx.Request] = []
        self.body = body if body is not None else {"success": True, "result": {}}
        self.status = status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)


def _index(recorder: _Recorder) -> VectorizeIndex:
    return VectorizeIndex(
        account_id="acct",
        api_token="token",
        index_name="gallery-embeddings",
        dimension=2,
        base_url="https://cf.test/client/v4",
        client=httpx.AsyncClient(transport=httpx.MockTransport(recorder)),
    )


@pytest.mark.anyio
async def test_upsert_sends_ndjson() -> None:
    recorder = _Recorder({"success": True, "result": {"mutationId": "m1"}})
    index = _index(recorder)

    await index.upsert(
        [
            IndexRecord(id="a", vector=[1.0, 0.0], metadata={"tags": ["x"]}),
            IndexRecord(id="b", vector=[0.0, 1.0], metadata={"tags": []}),
        ]
    )

    request = recorder.requests[0]
    assert request.url.path == (
        "/client/v4/accounts/acct/vectorize/v2/indexes/gallery-embeddings/upsert"
    )
    assert request.headers["Content-Type"] == "application/x-ndjson"
    assert request.headers["Authorization"] == "Bearer token"
    lines = [json.loads(line) for line in request.content.decode().splitlines()]
    assert lines == [
        {"id": "a", "values": [1.0, 0.0], "metadata": {"tags": ["x"]}},
        {"id": "b", "values": [0.0, 1.0], "metadata": {"tags": []}},
    ]


@pytest.mark.anyio
async def test_query_maps_matches() -> None:
    recorder = _Recorder(
        {
            "success": True,
            "result": {
                "count": 2,
                "matches": [
                    {"id": "a", "score": 0.8, "metadata": {"alt": "A"}},
                    {"id": "b", "score": 0.4},
                ],
            },
        }
    )
    index = _index(recorder)

    matches = await index.query([1.0, 0.0], top_k=7)

    assert [(m.id, m.score, m.metadata) for m in matches] == [
        ("a", 0.8, {"alt": "A"}),
        ("b", 0.4, {}),
    ]
    body = json.loads(recorder.requests[0].content)
    assert body == {
        "vector": [1.0, 0.0],
        "topK": 7,
        "returnMetadata": "all",
        "returnValues": False,
    }


@pytest.mark.anyio
async def test_list_all_with_empty_index() -> None:
    """Listing is a zero-vector query for ids, capped at the service topK."""
    recorder = _Recorder({"success": True, "result": {"matches": []}})
    index = _index(recorder)

    assert await index.list_all() == []

    assert len(recorder.requests) == 1
    body = json.loads(recorder.requests[0].content)
    assert body["vector"] == [0.0, 0.0]
    assert body["topK"] == LIST_TOP_K
    assert body["returnMetadata"] == "none"


@pytest.mark.anyio
async def test_list_all_fetches_metadata_by_id() -> None:
    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("/query"):
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "result": {"matches": [{"id": "a", "score": 0.0}, {"id": "b", "score": 0.0}]},
                },
            )
        return httpx.Response(
            200,
            json={
                "success": True,
                "result": [
                    {"id": "b", "values": [0.0, 1.0], "metadata": {"tags": ["y"]}},
                    {"id": "a", "values": [1.0, 0.0], "metadata": {"tags": ["x"]}},
                ],
            },
        )

    index = VectorizeIndex(
        account_id="acct",
        api_token="token",
        index_name="gallery-embeddings",
        dimension=2,
        base_url="https://cf.test/client/v4",
        client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
    )

    matches = await index.list_all()

    assert [(m.id, m.metadata) for m in matches] == [
        ("a", {"tags": ["x"]}),
        ("b", {"tags": ["y"]}),
    ]
    assert requests[1].url.path.endswith("/get_by_ids")
    assert json.loads(requests[1].content) == {"ids": ["a", "b"]}


@pytest.mark.anyio
async def test_dimension_mismatch_fails_before_request() -> None:
    recorder = _Recorder()
    index = _index(recorder)

    with pytest.raises(DimensionMismatch):
        await index.upsert([IndexRecord(id="a", vector=[1.0, 0.0, 0.0])])

    assert recorder.requests == []


@pytest.mark.anyio
async def test_http_error_is_index_unavailable() -> None:
    index = _index(_Recorder({"success": False}, status=503))

    with pytest.raises(IndexUnavailable) as exc_info:
        await index.query([1.0, 0.0], top_k=1)

    assert exc_info.value.detail == {"status": 503}


@pytest.mark.anyio
async def test_malformed_query_body_is_index_unavailable() -> None:
    index = _index(_Recorder({"success": True, "result": {}}))

    with pytest.raises(IndexUnavailable):
        await index.query([1.0, 0.0], top_k=1)
