"""Freshness decay and archival."""

from context_engine.decay.worker import DecayWorker

__all__ = ["DecayWorker"]
