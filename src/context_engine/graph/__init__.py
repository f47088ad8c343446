"""Relationship graph module."""

from context_engine.graph.builder import GraphBuilder

__all__ = ["GraphBuilder"]
