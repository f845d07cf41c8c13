from __future__ import annotations

import json

import httpx
import pytest

from matching_api.services.embedding_client import (
    EmbeddingClient,
    EmbeddingClientError,
    EmbeddingClientHTTPError,
    EmbeddingClientTimeout,
)


def _client(handler, api_key: str | None = "sk-test") -> EmbeddingClient:
    return EmbeddingClient(
        api_key=api_key,
        base_url="https://embeddings.example.com/v1/",
        model="text-embedding-3-small",
        http=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_embed_posts_openai_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": [{"embedding": [1, 2.5, -3]}]})

    assert _client(handler).embed("quiet portraits") == [1.0, 2.5, -3.0]
    assert seen["url"] == "https://embeddings.example.com/v1/embeddings"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"] == {
        "model": "text-embedding-3-small",
        "input": "quiet portraits",
        "encoding_format": "float",
    }


def test_embed_raises_on_error_status():
    client = _client(lambda request: httpx.Response(429, text="slow down"))
    with pytest.raises(EmbeddingClientHTTPError) as exc:
        client.embed("x")
    assert exc.value.status_code == 429
    assert str(exc.value) == "slow down"


def test_embed_rejects_malformed_payload():
    client = _client(lambda request: httpx.Response(200, json={"data": []}))
    with pytest.raises(EmbeddingClientError, match="malformed"):
        client.embed("x")


def test_embed_maps_timeouts():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(EmbeddingClientTimeout):
        _client(handler).embed("x")


def test_embed_requires_api_key():
    client = _client(lambda request: httpx.Response(200), api_key=None)
    assert client.configured is False
    with pytest.raises(EmbeddingClientError, match="OPENAI_API_KEY"):
        client.embed("x")


@pytest.mark.parametrize("embedding", [None, [], ["a", "b"], "0.1,0.2", [[0.1]]])
def test_embed_rejects_non_numeric_vector(embedding):
    client = _client(lambda request: httpx.Response(200, json={"data": [{"embedding": embedding}]}))
    with pytest.raises(EmbeddingClientError, match="malformed"):
        client.embed("x")
