"""ce_event MCP tool: capture errors, deploys, metric breaches and error logs."""

import logging
from typing import Annotated, Any, Literal

import pydantic
from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_engine.errors import EmbeddingUnavailable, ValidationError
from context_engine.events.processor import EventProcessor
from context_engine.models.event import DeployEvent, ErrorEvent, LogEntry, MetricEvent
from context_engine.models.item import KnowledgeItem
from context_engine.tools.ce_bundle import embedding_error
from context_engine.tools.formatters import format_item_full

logger = logging.getLogger(__name__)

_MAX_LOGS = 100

EventKind = Literal["error", "deploy", "metric", "logs"]


async def run_event(
    processor: EventProcessor,
    kind: EventKind,
    event: dict[str, Any] | None = None,
    logs: list[dict[str, Any]] | None = None,
) -> str:
    """Validate one event (or a log batch) and record it."""
    try:
        if kind == "logs":
            return await _run_logs(processor, logs or [])
        payload = event or {}
        item: KnowledgeItem
        if kind == "error":
            item = await processor.process_error(ErrorEvent.model_validate(payload))
        elif kind == "deploy":
            item = await processor.process_deploy(DeployEvent.model_validate(payload))
        else:
            breach = await processor.process_metric(MetricEvent.model_validate(payload))
            if breach is None:
                return "Metric within threshold; nothing recorded."
            item = breach
    except pydantic.ValidationError as exc:
        return f"Error: invalid {kind} event: {exc.error_count()} problem(s)\n{exc}"
    except ValidationError as exc:
        return f"Error: {exc}"
    except EmbeddingUnavailable as exc:
        return embedding_error(exc)
    return f"Recorded {item.id}\n\n{format_item_full(item)}"


async def _run_logs(processor: EventProcessor, logs: list[dict[str, Any]]) -> str:
    if not logs:
        return "Error: logs list is empty."
    if len(logs) > _MAX_LOGS:
        return f"Error: Maximum {_MAX_LOGS} log entries per call (got {len(logs)})."
    entries = [LogEntry.model_validate(log) for log in logs]
    result = await processor.process_logs(entries)
    line = (
        f"Processed {result.total} log entries: {len(result.incident_ids)} recorded,"
        f" {result.skipped} skipped."
    )
    if result.incident_ids:
        line += f" Recorded: {', '.join(result.incident_ids)}"
    return line


def register_ce_event(mcp: FastMCP) -> None:
    """Register the ce_event tool with the MCP server."""

    @mcp.tool()
    async def ce_event(
        kind: Annotated[EventKind, Field(description="error, deploy, metric or logs")],
        event: Annotated[
            dict[str, Any] | None,
            Field(
                description=(
                    'Event payload, e.g. {"title": "...", "app_name": "api",'
                    ' "stack_trace": "..."} for errors, {"app_name": "api",'
                    ' "version": "1.2.0", "commit_hash": "abc123"} for deploys,'
                    ' {"metric_name": "latency_p99", "value": 900, "threshold": 500}'
                    " for metrics"
                )
            ),
        ] = None,
        logs: Annotated[
            list[dict[str, Any]] | None,
            Field(
                description=(
                    'For kind=logs: log entries with "level" and "message"'
                    ' (plus optional "app", "service", "timestamp"), max 100'
                )
            ),
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Capture an operational event as a knowledge item.

        Errors and metric threshold breaches become incidents under
        investigation; deploys become snapshots. For logs, only ERROR,
        CRITICAL, FATAL and PANIC entries are recorded.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        return await run_event(ctx.lifespan_context["events"], kind, event, logs)
