"""Keyword-based automatic tagging."""

TAG_KEYWORDS: dict[str, tuple[str, ...]] = {
    "database": (
        "database", "db", "postgresql", "postgres", "mysql", "sql",
        "query", "migration", "schema", "table", "index",
    ),
    "performance": (
        "performance", "slow", "latency", "throughput", "bottleneck",
        "optimization", "cache", "load",
    ),
    "infrastructure": (
        "infrastructure", "deploy", "deployment", "server", "container",
        "docker", "kubernetes", "k8s", "aws", "cloud",
    ),
    "security": (
        "security", "auth", "authentication", "authorization", "vulnerability",
        "xss", "csrf", "injection",
    ),
    "frontend": (
        "frontend", "ui", "ux", "component", "react", "liveview",
        "template", "css", "javascript", "browser",
    ),
    "api": ("api", "endpoint", "rest", "graphql", "http", "request", "response", "json"),
    "testing": ("test", "testing", "spec", "unit", "integration", "e2e", "coverage"),
    "monitoring": ("monitoring", "alert", "logging", "metric", "observability", "tracing"),
    "caching": ("cache", "caching", "redis", "memcached", "ttl", "invalidation", "stampede"),
    "incident": ("incident", "outage", "downtime", "failure", "crash", "error", "exception"),
}  # fmt: skip


def auto_tags(text: str | None) -> list[str]:
    """Derive sorted tags from text by case-insensitive substring match."""
    if not text:
        return []
    lower = text.lower()
    return sorted(
        tag for tag, keywords in TAG_KEYWORDS.items() if any(kw in lower for kw in keywords)
    )
