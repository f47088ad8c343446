"""Embedding and similarity search."""

from context_engine.search.embeddings import EmbeddingProvider, OllamaEmbedder

__all__ = ["EmbeddingProvider", "OllamaEmbedder"]
