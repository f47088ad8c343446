"""Remediation suggestions from resolved incidents."""

from context_engine.remediation.advisor import suggest_remediation

__all__ = ["suggest_remediation"]
