"""Keyword classification of error text into failure patterns."""

UNKNOWN_PATTERN = "unknown"
PERFORMANCE_PATTERN = "performance"

# Checked in order; the first pattern with a matching keyword wins.
# Matching is case-sensitive ("SQL", "OOM").
_PATTERN_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("database_error", ("database", "SQL", "query", "pgx", "gorm")),
    ("connection_error", ("connection", "timeout", "ECONNREFUSED", "dial tcp")),
    ("resource_exhaustion", ("memory", "OOM", "OutOfMemory", "out of memory")),
    ("authentication_error", ("401", "403", "Unauthorized", "Forbidden")),
    ("not_found", ("404", "NotFound", "not found")),
    ("server_error", ("500", "502", "503", "Internal Server Error")),
    ("runtime_panic", ("panic", "runtime error", "nil pointer")),
]

_PATTERN_SEVERITY: dict[str, str] = {
    "resource_exhaustion": "critical",
    "runtime_panic": "critical",
    "database_error": "high",
    "connection_error": "high",
    "server_error": "high",
    "authentication_error": "medium",
    "not_found": "low",
    PERFORMANCE_PATTERN: "medium",
}

_PATTERN_ACTIONS: dict[str, list[str]] = {
    "database_error": [
        "Check database connection settings",
        "Verify database is running and accessible",
        "Check for connection pool exhaustion",
        "Review recent schema migrations",
    ],
    "connection_error": [
        "Check connection pool settings",
        "Verify network connectivity",
        "Check firewall rules and security groups",
        "Review timeout configurations",
    ],
    "resource_exhaustion": [
        "Check memory usage and limits",
        "Review resource quotas",
        "Scale up resources if needed",
        "Check for memory leaks",
    ],
    "authentication_error": [
        "Verify credentials are correct",
        "Check token expiration",
        "Review permission settings",
        "Verify authentication service is running",
    ],
    "not_found": [
        "Verify the resource exists",
        "Check for typos in identifiers",
        "Review routing configuration",
        "Check if resource was deleted",
    ],
    "server_error": [
        "Check application logs for details",
        "Review recent deployments",
        "Check upstream service health",
        "Verify configuration settings",
    ],
    "runtime_panic": [
        "Review stack trace for nil pointer access",
        "Check for unsafe type assertions",
        "Add nil checks at the failing call site",
        "Review error handling patterns",
    ],
    PERFORMANCE_PATTERN: [
        "Check for N+1 queries",
        "Review database indexes",
        "Check for resource bottlenecks",
        "Consider caching strategies",
    ],
    UNKNOWN_PATTERN: [
        "Review full error message and context",
        "Check recent changes to the system",
        "Consult documentation",
        "Escalate to on-call engineer",
    ],
}

KNOWN_PATTERNS: tuple[str, ...] = tuple(_PATTERN_ACTIONS)


def classify_error_pattern(*texts: str | None) -> str:
    """Pattern name for the joined texts, or ``"unknown"``."""
    text = " ".join(t for t in texts if t)
    for pattern, keywords in _PATTERN_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return pattern
    return UNKNOWN_PATTERN


def severity_for_pattern(pattern: str) -> str:
    return _PATTERN_SEVERITY.get(pattern, "medium")


def suggested_actions(pattern: str) -> list[str]:
    """First steps for a pattern; unknown patterns get the generic list."""
    return list(_PATTERN_ACTIONS.get(pattern, _PATTERN_ACTIONS[UNKNOWN_PATTERN]))
