"""Context bundling and ranking."""

from context_engine.bundle.bundler import bundle_context

__all__ = ["bundle_context"]
