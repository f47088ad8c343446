"""Tests for the Ollama embedding client."""

import json

import httpx
import pytest

from context_engine.errors import EmbeddingUnavailable
from context_engine.search.embeddings import EmbeddingProvider, OllamaEmbedder


class FakeOllama:
    """Records requests and answers like Ollama's /api/tags and /api/embed."""

    def __init__(self, dim: int = 4, embed_error: Exception | None = None, tags_up: bool = True):
        self.dim = dim
        self.embed_error = embed_error
        self.tags_up = tags_up
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/tags":
            if not self.tags_up:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"models": [{"name": "all-minilm:latest"}]})
        if self.embed_error is not None:
            raise self.embed_error
        body = json.loads(request.content)
        vectors = [[float(i + 1)] * self.dim for i, _ in enumerate(body["input"])]
        return httpx.Response(200, json={"model": body["model"], "embeddings": vectors})

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def _embedder(fake: FakeOllama, dim: int = 4) -> OllamaEmbedder:
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    return OllamaEmbedder(client, model="all-minilm", dim=dim, timeout=1.0)


@pytest.mark.asyncio
async def test_embed_single():
    fake = FakeOllama()
    embedder = _embedder(fake)
    vec = await embedder.embed("hello")
    assert vec == [1.0, 1.0, 1.0, 1.0]

    payload = json.loads(fake.requests[-1].content)
    assert payload == {"model": "all-minilm", "input": ["hello"]}
    await embedder.close()


@pytest.mark.asyncio
async def test_embed_many_single_request():
    fake = FakeOllama()
    embedder = _embedder(fake)
    vectors = await embedder.embed_many(["a", "b", "c"])
    assert [v[0] for v in vectors] == [1.0, 2.0, 3.0]
    assert fake.paths().count("/api/embed") == 1
    await embedder.close()


@pytest.mark.asyncio
async def test_embed_many_empty_makes_no_request():
    fake = FakeOllama()
    embedder = _embedder(fake)
    assert await embedder.embed_many([]) == []
    assert fake.requests == []


@pytest.mark.asyncio
async def test_availability_success_is_cached():
    fake = FakeOllama()
    embedder = _embedder(fake)
    await embedder.embed("one")
    await embedder.embed("two")
    assert fake.paths().count("/api/tags") == 1


@pytest.mark.asyncio
async def test_unreachable_model():
    fake = FakeOllama(tags_up=False)
    embedder = _embedder(fake)
    assert await embedder.is_available() is False
    with pytest.raises(EmbeddingUnavailable, match="not reachable"):
        await embedder.embed("hello")
    # Failure is not cached: the next call checks again
    assert fake.paths().count("/api/tags") == 2


@pytest.mark.asyncio
async def test_timeout_raises_unavailable():
    fake = FakeOllama(embed_error=httpx.ReadTimeout("too slow"))
    embedder = _embedder(fake)
    with pytest.raises(EmbeddingUnavailable, match="timed out"):
        await embedder.embed("hello")


@pytest.mark.asyncio
async def test_http_error_raises_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tags":
            return httpx.Response(200, json={"models": []})
        return httpx.Response(500, json={"error": "model failed to load"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    embedder = OllamaEmbedder(client, model="all-minilm", dim=4)
    with pytest.raises(EmbeddingUnavailable, match="failed"):
        await embedder.embed("hello")


@pytest.mark.asyncio
async def test_wrong_dimension_raises_unavailable():
    fake = FakeOllama(dim=8)
    embedder = _embedder(fake, dim=4)
    with pytest.raises(EmbeddingUnavailable, match="8-dim"):
        await embedder.embed("hello")


@pytest.mark.asyncio
async def test_count_mismatch_raises_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tags":
            return httpx.Response(200, json={"models": []})
        return httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3, 0.4]]})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    embedder = OllamaEmbedder(client, model="all-minilm", dim=4)
    with pytest.raises(EmbeddingUnavailable, match="Expected 2"):
        await embedder.embed_many(["a", "b"])


def test_defaults_from_env(monkeypatch):
    monkeypatch.setenv("CE_EMBEDDING_MODEL", "nomic-embed-text")
    monkeypatch.setenv("CE_EMBEDDING_DIM", "768")
    monkeypatch.setenv("CE_EMBEDDING_TIMEOUT", "5")
    embedder = OllamaEmbedder()
    assert embedder.model == "nomic-embed-text"
    assert embedder.dim == 768
    assert embedder.timeout == 5.0


def test_satisfies_protocol():
    assert isinstance(OllamaEmbedder(), EmbeddingProvider)
