"""
Tests for the Ollama embedding provider and text generator using httpx mock transports.
"""

import json

import httpx
import pytest

from talktodb.errors import ProviderUnavailable
from talktodb.repositories import OllamaEmbeddingProvider, OllamaTextGenerator


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def embedding_provider(handler, dimension: int = 4) -> OllamaEmbeddingProvider:
    return OllamaEmbeddingProvider(
        model_name="embeddinggemma",
        base_url="http://ollama:11434/",
        dimension=dimension,
        client=mock_client(handler),
    )


async def test_encode_posts_to_embed_endpoint():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3, 0.4]]})

    vector = await embedding_provider(handler).encode("Top 10 action movies?")

    assert vector == [0.1, 0.2, 0.3, 0.4]
    assert seen["url"] == "http://ollama:11434/api/embed"
    assert seen["body"] == {"model": "embeddinggemma", "input": "Top 10 action movies?"}


async def test_encode_accepts_singular_embedding_field():
    provider = embedding_provider(lambda r: httpx.Response(200, json={"embedding": [1, 0, 0, 0]}))

    assert await provider.encode("q") == [1.0, 0.0, 0.0, 0.0]


@pytest.mark.parametrize(
    "payload",
    [
        {"embeddings": []},
        {"embeddings": [[]]},
        {"embeddings": [[0.1, 0.2]]},
        {"embeddings": [[0.1, "x", 0.3, 0.4]]},
        {"embeddings": {"vector": [0.1, 0.2, 0.3, 0.4]}},
        {"embeddings": "0.1,0.2,0.3,0.4"},
        {"error": "model not loaded"},
    ],
)
async def test_malformed_embeddings_are_provider_unavailable(payload):
    provider = embedding_provider(lambda r: httpx.Response(200, json=payload))

    with pytest.raises(ProviderUnavailable):
        await provider.encode("q")


async def test_http_error_is_provider_unavailable():
    provider = embedding_provider(lambda r: httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(ProviderUnavailable):
        await provider.encode("q")
    assert not await provider.is_available()


async def test_connection_error_is_provider_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderUnavailable):
        await embedding_provider(handler).encode("q")


def test_dimension_and_model_name():
    provider = embedding_provider(lambda r: httpx.Response(200), dimension=768)

    assert provider.dimension == 768
    assert provider.model_name == "embeddinggemma"


async def test_generate_returns_completion_text():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "```sql\nSELECT 1\n```", "done": True})

    generator = OllamaTextGenerator(model_name="llama3.1", base_url="http://ollama:11434", client=mock_client(handler))

    assert await generator.generate("prompt") == "```sql\nSELECT 1\n```"
    assert seen["url"] == "http://ollama:11434/api/generate"
    assert seen["body"] == {"model": "llama3.1", "prompt": "prompt", "stream": False}


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="unavailable"),
        httpx.Response(200, json={"done": True}),
        httpx.Response(200, text="not json"),
    ],
)
async def test_generate_failures_are_provider_unavailable(response):
    generator = OllamaTextGenerator(
        model_name="llama3.1",
        base_url="http://ollama:11434",
        client=mock_client(lambda r: response),
    )

    with pytest.raises(ProviderUnavailable):
        await generator.generate("prompt")
