"""Error taxonomy for the retrieval core."""


class ContextEngineError(Exception):
    """Base class for all context-engine errors."""


class EmbeddingUnavailable(ContextEngineError):
    """The embedding model is not ready, timed out, or returned a bad vector.

    Never retried inside the core; callers decide whether to retry.
    """


class ItemNotFound(ContextEngineError, LookupError):
    """A referenced knowledge item does not exist in the store."""

    def __init__(self, item_id: str) -> None:
        """Record the missing item ID."""
        super().__init__(f"Item {item_id} not found")
        self.item_id = item_id


class ValidationError(ContextEngineError, ValueError):
    """Malformed item payload at creation or update time."""
