"""Turn error, deploy and metric events into knowledge items."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

from context_engine.events.patterns import (
    PERFORMANCE_PATTERN,
    classify_error_pattern,
    severity_for_pattern,
)
from context_engine.models.event import DeployEvent, ErrorEvent, LogEntry, MetricEvent
from context_engine.models.item import Incident, Snapshot
from context_engine.store.knowledge_store import KnowledgeStore

logger = logging.getLogger(__name__)

AUTO_CAPTURED = "auto-captured"
SYSTEM_AUTHOR = "system"

# Upper- or lower-case only; "Error" is not an error level
_CRITICAL_LEVELS = {"CRITICAL", "FATAL", "PANIC", "critical", "fatal", "panic"}
_ERROR_LEVELS = {"ERROR", "error", *_CRITICAL_LEVELS}
_ERROR_LINE_MARKERS = ("Error", "Exception", "panic")
_MAX_TITLE_CHARS = 120
_MAX_ROOT_CAUSE_CHARS = 200
_UNKNOWN_CAUSE = "Unknown, needs investigation"


@dataclass
class LogBatchResult:
    """Outcome of processing a batch of log lines."""

    total: int = 0
    skipped: int = 0
    incident_ids: list[str] = field(default_factory=list)


class EventProcessor:
    """Records operational events through the knowledge store.

    Errors and threshold breaches become incidents with status
    ``investigating``. Deployments become snapshots.
    """

    def __init__(self, store: KnowledgeStore) -> None:
        self._store = store

    async def process_error(self, event: ErrorEvent) -> Incident:
        """Record an application error as an incident."""
        pattern = classify_error_pattern(event.stack_trace, event.message, event.title)
        incident = await self._store.create_incident(
            _error_title(event),
            _root_cause(event),
            symptoms=event.stack_trace or event.message or event.title,
            severity=event.severity or severity_for_pattern(pattern),
            impact=_impact(event.app_name, event.environment),
            pattern=pattern,
            status="investigating",
            item_date=parse_event_date(event.timestamp),
            author=SYSTEM_AUTHOR,
            tags=_unique([AUTO_CAPTURED, event.app_name, event.environment, pattern]),
        )
        logger.info("Captured error event as %s (%s)", incident.id, pattern)
        return incident

    async def process_deploy(self, event: DeployEvent) -> Snapshot:
        """Record a deployment as a snapshot."""
        message = " ".join(p for p in ("Deploy", event.app_name, event.version) if p)
        if event.changes:
            message += ": " + "; ".join(event.changes)
        snapshot = await self._store.create_snapshot(
            event.commit_hash or f"deploy-{uuid.uuid4().hex[:12]}",
            message,
            author=event.deployer or SYSTEM_AUTHOR,
            item_date=parse_event_date(event.timestamp),
        )
        logger.info("Captured deploy of %s as %s", event.app_name, snapshot.id)
        return snapshot

    async def process_metric(self, event: MetricEvent) -> Incident | None:
        """Record a threshold breach as an incident; readings at or below it are ignored."""
        if event.value <= event.threshold:
            logger.debug(
                "Metric %s=%s within threshold %s", event.metric_name, event.value, event.threshold
            )
            return None
        value, limit = _number(event.value), _number(event.threshold)
        incident = await self._store.create_incident(
            f"Performance threshold exceeded: {event.metric_name}",
            f"Metric {event.metric_name} = {value} (threshold: {limit})",
            symptoms=f"{event.metric_name} at {value}, threshold is {limit}",
            severity=event.severity or "medium",
            impact=_impact(event.app_name, event.environment),
            pattern=PERFORMANCE_PATTERN,
            status="investigating",
            item_date=parse_event_date(event.timestamp),
            author=SYSTEM_AUTHOR,
            tags=_unique([PERFORMANCE_PATTERN, AUTO_CAPTURED, event.app_name, event.metric_name]),
        )
        logger.info("Captured metric breach %s as %s", event.metric_name, incident.id)
        return incident

    async def process_logs(self, entries: list[LogEntry]) -> LogBatchResult:
        """Record every error-level log line as an incident; other levels are skipped."""
        result = LogBatchResult(total=len(entries))
        for entry in entries:
            if not is_error_log(entry):
                result.skipped += 1
                continue
            incident = await self.process_error(log_to_error_event(entry))
            result.incident_ids.append(incident.id)
        return result


def is_error_log(entry: LogEntry) -> bool:
    return entry.level in _ERROR_LEVELS


def log_to_error_event(entry: LogEntry) -> ErrorEvent:
    """Map a log line onto an error event: first line as title, body as trace."""
    first_line = entry.message.split("\n", 1)[0]
    return ErrorEvent(
        title=first_line[:_MAX_TITLE_CHARS] or None,
        stack_trace=entry.message or None,
        app_name=entry.app or entry.app_name or entry.service or "unknown",
        timestamp=entry.timestamp,
        severity="critical" if entry.level in _CRITICAL_LEVELS else "high",
    )


def parse_event_date(timestamp: str | None) -> date:
    """Date part of an ISO 8601 datetime or date; today when absent or unparseable."""
    if timestamp:
        try:
            return datetime.fromisoformat(timestamp).date()
        except ValueError:
            logger.debug("Unparseable event timestamp %r, using today", timestamp)
    return datetime.now(UTC).date()


def _error_title(event: ErrorEvent) -> str:
    title = event.title or "Unknown error"
    return f"{title} in {event.app_name}" if event.app_name else title


def _root_cause(event: ErrorEvent) -> str:
    if event.root_cause:
        return event.root_cause
    if event.stack_trace:
        return _error_line(event.stack_trace)
    return event.message or event.title or _UNKNOWN_CAUSE


def _error_line(stack_trace: str) -> str:
    """First line naming an error, else the head of the trace."""
    for line in stack_trace.split("\n"):
        if any(marker in line for marker in _ERROR_LINE_MARKERS):
            return line.strip()
    return stack_trace[:_MAX_ROOT_CAUSE_CHARS].strip() or _UNKNOWN_CAUSE


def _impact(app_name: str | None, environment: str | None) -> str:
    if app_name and environment:
        return f"{app_name} in {environment}"
    if app_name:
        return f"Affected application: {app_name}"
    if environment:
        return f"Environment: {environment}"
    return "Impact unknown"


def _unique(values: list[str | None]) -> list[str]:
    return list(dict.fromkeys(v for v in values if v))


def _number(value: float) -> str:
    return str(int(value)) if value.is_integer() else str(value)
