"""Capture of operational events (errors, deploys, metrics, logs) as knowledge items."""
