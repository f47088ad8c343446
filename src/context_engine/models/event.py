"""Operational events reported by external applications."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["low", "medium", "high", "critical"]


class ErrorEvent(BaseModel):
    """An application error; becomes an incident under investigation."""

    title: str | None = None
    message: str | None = None
    app_name: str | None = None
    stack_trace: str | None = None
    root_cause: str | None = None
    severity: Severity | None = None
    environment: str | None = None
    timestamp: str | None = None


class DeployEvent(BaseModel):
    """A deployment; becomes a snapshot."""

    app_name: str = Field(min_length=1)
    version: str | None = None
    commit_hash: str | None = None
    deployer: str | None = None
    environment: str | None = None
    changes: list[str] = Field(default_factory=list)
    timestamp: str | None = None


class MetricEvent(BaseModel):
    """A metric reading; becomes an incident only above its threshold."""

    metric_name: str = Field(min_length=1)
    value: float
    threshold: float
    app_name: str | None = None
    environment: str | None = None
    severity: Severity | None = None
    timestamp: str | None = None


class LogEntry(BaseModel):
    """One structured log line as shipped by a log forwarder."""

    model_config = ConfigDict(extra="ignore")

    level: str = ""
    message: str = ""
    app: str | None = None
    app_name: str | None = None
    service: str | None = None
    timestamp: str | None = None


class SimilarIncident(BaseModel):
    """A resolved incident that resembles the error being remediated."""

    id: str
    title: str
    root_cause: str
    resolution: str | None = None
    prevention: list[str] = Field(default_factory=list)
    similarity: float
    item_date: date | None = None


class Remediation(BaseModel):
    """Pattern, severity and prior fixes for an error."""

    pattern: str
    severity: str
    similar_incidents: list[SimilarIncident] = Field(default_factory=list)
    suggested_actions: list[str] = Field(default_factory=list)
