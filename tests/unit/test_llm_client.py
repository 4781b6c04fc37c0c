"""Tests for the Ollama HTTP client."""
import json

import httpx
import pytest

from onboarding_bot.llm_client import OllamaClient


def _client(handler):
    return OllamaClient(
        base_url="http://ollama.test/", timeout=5.0, transport=httpx.MockTransport(handler)
    )


async def test_complete_posts_non_streaming_request():
    seen = []

    def handler(request):
        seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"response": "TITLE: Hi\nCONTENT: 1. Hello there."})

    completion = await _client(handler).complete("prompt text", model="gemma2:9b", temperature=0.2)

    assert completion == "TITLE: Hi\nCONTENT: 1. Hello there."
    assert seen == [
        (
            "/api/generate",
            {
                "model": "gemma2:9b",
                "prompt": "prompt text",
                "stream": False,
                "options": {"temperature": 0.2},
            },
        )
    ]


async def test_complete_tolerates_missing_response_field():
    client = _client(lambda request: httpx.Response(200, json={"done": True}))
    assert await client.complete("prompt") == ""


async def test_http_errors_propagate():
    client = _client(lambda request: httpx.Response(500, json={"error": "model not loaded"}))
    with pytest.raises(httpx.HTTPStatusError):
        await client.complete("prompt")


async def test_connection_errors_propagate():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(httpx.ConnectError):
        await _client(handler).complete("prompt")


async def test_embeddings_request():
    seen = []

    def handler(request):
        seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"embedding": [0.1, 0.2, 0.3]})

    data = await _client(handler).embeddings("laptop setup", model="nomic-embed-text")

    assert data["embedding"] == [0.1, 0.2, 0.3]
    assert seen == [("/api/embeddings", {"model": "nomic-embed-text", "prompt": "laptop setup"})]


async def test_list_models():
    def handler(request):
        assert request.url.path == "/api/tags"
        return httpx.Response(
            200, json={"models": [{"name": "gemma2:9b"}, {"name": "nomic-embed-text:latest"}]}
        )

    assert await _client(handler).list_models() == ["gemma2:9b", "nomic-embed-text:latest"]
