"""Organizational-knowledge retrieval: search, graph expansion and token-budgeted bundles."""

__version__ = "0.1.0"
