"""Embedding provider protocol and the Ollama-backed implementation."""

import logging
from typing import Protocol, runtime_checkable

import httpx

from context_engine.config import (
    get_embedding_dim,
    get_embedding_model,
    get_embedding_timeout,
    get_ollama_url,
)
from context_engine.errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns text into fixed-length vectors.

    ``embed`` must be deterministic for identical input. Failures raise
    ``EmbeddingUnavailable``; implementations never retry on their own.
    """

    dim: int

    async def is_available(self) -> bool:
        """Check whether the underlying model is ready."""
        ...

    async def embed(self, text: str) -> list[float]:
        """Embed one text."""
        ...

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts; result is index-aligned with the input."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...


class OllamaEmbedder:
    """Generates embeddings via Ollama's /api/embed endpoint.

    One instance is created at startup and shared by every request; Ollama
    queues concurrent calls behind its own model concurrency limit.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        model: str | None = None,
        dim: int | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize with an optional HTTP client and model overrides."""
        self._http = http_client
        self.model = model or get_embedding_model()
        self.dim = dim or get_embedding_dim()
        self.timeout = timeout if timeout is not None else get_embedding_timeout()
        self._available: bool | None = None

    async def is_available(self) -> bool:
        """Check if Ollama is reachable. Only caches success, so failures are retried."""
        if self._available is True:
            return True
        try:
            client = self._get_client()
            resp = await client.get(f"{get_ollama_url()}/api/tags", timeout=self.timeout)
            resp.raise_for_status()
            self._available = True
        except httpx.HTTPError:
            logger.warning("Ollama not available, embeddings disabled")
            self._available = None
        return self._available is True

    async def embed(self, text: str) -> list[float]:
        """Generate an embedding vector for the given text."""
        vectors = await self.embed_many([text])
        return vectors[0]

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a batch of texts in a single request."""
        if not texts:
            return []
        if not await self.is_available():
            raise EmbeddingUnavailable(f"Embedding model {self.model} is not reachable")
        try:
            client = self._get_client()
            resp = await client.post(
                f"{get_ollama_url()}/api/embed",
                json={"model": self.model, "input": texts},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.TimeoutException as exc:
            self._available = None  # Will re-check next call
            raise EmbeddingUnavailable(
                f"Embedding request timed out after {self.timeout:.0f}s"
            ) from exc
        except httpx.HTTPError as exc:
            self._available = None
            raise EmbeddingUnavailable(f"Embedding request failed: {exc}") from exc

        # Ollama /api/embed returns {"embeddings": [[...], ...]}
        vectors: list[list[float]] = data.get("embeddings") or []
        if len(vectors) != len(texts):
            raise EmbeddingUnavailable(
                f"Expected {len(texts)} embeddings, model returned {len(vectors)}"
            )
        for vec in vectors:
            if len(vec) != self.dim:
                raise EmbeddingUnavailable(
                    f"Model {self.model} returned {len(vec)}-dim vectors, expected {self.dim}"
                )
        return vectors

    def _get_client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient()
        return self._http

    async def close(self) -> None:
        """Close the HTTP client if open."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
