"""Shared test fixtures."""

import hashlib
import math
import re

import pytest_asyncio

from context_engine.db.connection import create_connection
from context_engine.errors import EmbeddingUnavailable
from context_engine.graph.builder import GraphBuilder
from context_engine.store.knowledge_store import KnowledgeStore

_TOKEN_RE = re.compile(r"[a-z0-9]+")


class FakeEmbedder:
    """Deterministic bag-of-words embedder for testing.

    Each token is hashed into one of ``dim`` buckets, so texts sharing words
    get similar vectors and identical texts get identical vectors.
    """

    def __init__(self, dim: int = 384):
        self.dim = dim
        self.available = True
        self.calls: list[str] = []

    async def is_available(self) -> bool:
        return self.available

    async def embed(self, text: str) -> list[float]:
        if not self.available:
            raise EmbeddingUnavailable("fake model offline")
        self.calls.append(text)
        vec = [0.0] * self.dim
        tokens = _TOKEN_RE.findall(text.lower())
        for token in tokens:
            bucket = int(hashlib.md5(token.encode()).hexdigest(), 16) % self.dim
            vec[bucket] += 1.0
        if not tokens:
            vec[0] = 1.0
        norm = math.sqrt(sum(v * v for v in vec))
        return [v / norm for v in vec]

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed(t) for t in texts]

    async def close(self):
        pass


@pytest_asyncio.fixture
async def db():
    """In-memory database with full schema and sqlite-vec."""
    conn = await create_connection(":memory:")
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def embedder():
    """Deterministic fake embedder."""
    return FakeEmbedder()


@pytest_asyncio.fixture
async def graph_builder(db):
    """Graph builder backed by the in-memory DB."""
    return GraphBuilder(db)


@pytest_asyncio.fixture
async def store(db, embedder, graph_builder):
    """Knowledge store backed by in-memory DB and the fake embedder."""
    return KnowledgeStore(db, embedder, graph_builder)
