from __future__ import annotations

import urllib.error

import pytest

from conftest import embedding_response
from text_embedder.errors import ProviderError
from text_embedder.remote.openai_backend import (
    OpenAIEmbeddingBackend,
    ProviderConfig,
    order_embeddings,
)


@pytest.fixture
def backend(http_client):
    config = ProviderConfig("openai/text-embedding-ada-002", "sk-test")
    return OpenAIEmbeddingBackend(config, http_client)


def test_model_name_strips_prefix():
    assert ProviderConfig("openai/text-embedding-ada-002", "k").model_name == "text-embedding-ada-002"


def test_embed_request_format(backend, http_client):
    http_client.queue(200, embedding_response([[0.1, 0.2, 0.3]]))
    assert backend.embed("hello") == pytest.approx([0.1, 0.2, 0.3])

    method, url, body, headers = http_client.requests[0]
    assert method == "POST"
    assert url == "https://api.openai.com/v1/embeddings"
    assert body == {"input": "hello", "model": "text-embedding-ada-002"}
    assert headers == {
        "Authorization": "Bearer sk-test",
        "Content-Type": "application/json",
    }


def test_embed_non_200_carries_raw_body(backend, http_client):
    http_client.queue(429, '{"error": "rate limited"}')
    with pytest.raises(ProviderError) as info:
        backend.embed("hello")
    assert info.value.body == '{"error": "rate limited"}'
    assert "rate limited" in info.value.message


def test_batch_is_one_request_in_input_order(backend, http_client):
    http_client.queue(200, embedding_response([[1.0], [2.0], [3.0]]))
    assert backend.embed_batch(["a", "b", "c"]) == [[1.0], [2.0], [3.0]]
    assert len(http_client.requests) == 1
    assert http_client.requests[0][2]["input"] == ["a", "b", "c"]


def test_batch_reorders_by_index(backend, http_client):
    payload = {
        "data": [
            {"embedding": [3.0], "index": 2},
            {"embedding": [1.0], "index": 0},
            {"embedding": [2.0], "index": 1},
        ]
    }
    http_client.queue(200, payload)
    assert backend.embed_batch(["a", "b", "c"]) == [[1.0], [2.0], [3.0]]


def test_batch_without_index_keeps_listed_order(backend, http_client):
    http_client.queue(200, embedding_response([[1.0], [2.0]], with_index=False))
    assert backend.embed_batch(["a", "b"]) == [[1.0], [2.0]]


def test_order_embeddings_rejects_bad_responses():
    with pytest.raises(ProviderError):
        order_embeddings([{"embedding": [1.0], "index": 0}], 2)
    with pytest.raises(ProviderError):
        order_embeddings(
            [{"embedding": [1.0], "index": 0}, {"embedding": [2.0], "index": 0}], 2
        )


def test_invalid_json_is_a_provider_error(backend, http_client):
    http_client.queue(200, "not json")
    with pytest.raises(ProviderError):
        backend.embed("hello")


def test_unreachable_provider(backend, http_client, monkeypatch):
    def refuse(url, body, headers=None):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(http_client, "post", refuse)
    with pytest.raises(ProviderError):
        backend.embed("hello")


@pytest.mark.parametrize(
    "payload",
    [
        {"data": [{"object": "embedding"}]},
        {"data": [{"embedding": None}]},
        {"data": [{"embedding": ["x"]}]},
        {"data": "nope"},
        [],
    ],
    ids=["missing-embedding", "null-embedding", "non-numeric", "data-not-list", "list-body"],
)
def test_malformed_200_body_is_a_provider_error(backend, http_client, payload):
    http_client.queue(200, payload)
    with pytest.raises(ProviderError):
        backend.embed("hello")


def test_malformed_batch_item_is_a_provider_error(backend, http_client):
    http_client.queue(200, {"data": [{"embedding": [1.0], "index": 0}, {"index": 1}]})
    with pytest.raises(ProviderError):
        backend.embed_batch(["a", "b"])


def test_malformed_model_listing_keeps_body(backend, http_client):
    http_client.queue(200, {"data": [{"object": "model"}]})
    with pytest.raises(ProviderError) as info:
        backend.list_models()
    assert info.value.body == '{"data": [{"object": "model"}]}'


@pytest.mark.parametrize(
    "exc", [TimeoutError("timed out"), ConnectionResetError("reset by peer")]
)
def test_transport_failure_is_a_provider_error(backend, http_client, monkeypatch, exc):
    def fail(url, body, headers=None):
        raise exc

    monkeypatch.setattr(http_client, "post", fail)
    with pytest.raises(ProviderError) as info:
        backend.embed_batch(["a", "b"])
    assert "unreachable" in info.value.message


def test_custom_base_url(http_client):
    backend = OpenAIEmbeddingBackend(
        ProviderConfig("openai/text-embedding-3-small", "k"),
        http_client,
        base_url="http://localhost:8080/v1/",
    )
    http_client.queue(200, {"data": [{"id": "text-embedding-3-small"}]})
    assert backend.list_models() == ["text-embedding-3-small"]
    assert http_client.requests[0][1] == "http://localhost:8080/v1/models"
