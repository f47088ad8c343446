"""Environment-variable-based configuration."""

import os
from pathlib import Path


def get_db_path() -> Path:
    """Return the database file path from CE_DB_PATH."""
    raw = os.environ.get("CE_DB_PATH", "~/.local/share/context_engine/knowledge.db")
    return Path(raw).expanduser()


def get_ollama_url() -> str:
    """Return the Ollama API URL from CE_OLLAMA_URL."""
    return os.environ.get("CE_OLLAMA_URL", "http://localhost:11434")


def get_embedding_model() -> str:
    """Return the embedding model name from CE_EMBEDDING_MODEL."""
    return os.environ.get("CE_EMBEDDING_MODEL", "all-minilm")


def get_embedding_timeout() -> float:
    """Return the embedding call timeout in seconds from CE_EMBEDDING_TIMEOUT.

    Generous by default so a cold model load does not fail the first request.
    """
    return float(os.environ.get("CE_EMBEDDING_TIMEOUT", "30.0"))


def get_embedding_dim() -> int:
    """Return the embedding vector dimensions from CE_EMBEDDING_DIM."""
    return int(os.environ.get("CE_EMBEDDING_DIM", "384"))


def get_decay_interval_hours() -> float:
    """Return hours between decay passes from CE_DECAY_INTERVAL_HOURS (0 disables)."""
    return float(os.environ.get("CE_DECAY_INTERVAL_HOURS", "24"))


def get_log_level() -> str:
    """Return the logging level from CE_LOG_LEVEL."""
    return os.environ.get("CE_LOG_LEVEL", "WARNING")
