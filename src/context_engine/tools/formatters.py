"""Compact output formatters for MCP tool responses."""

from context_engine.models.bundle import Bundle, BundleItem
from context_engine.models.event import Remediation
from context_engine.models.graph import RelatedItem
from context_engine.models.item import KnowledgeItem
from context_engine.models.search import ScoredItem


def format_header(item_id: str, item_type: str, title: str, score: float | None = None) -> str:
    """Format: [ADR-001] decision | Use PostgreSQL (87%)."""
    line = f"[{item_id}] {item_type} | {title}"
    if score is not None:
        line += f" ({score:.0%})"
    return line


def format_meta(tags: list[str], item_date: object | None = None) -> str:
    """Format: #tag1 #tag2 | 2025-03-01."""
    parts: list[str] = []
    if tags:
        parts.append(" ".join(f"#{t}" for t in tags))
    if item_date:
        parts.append(str(item_date))
    return " | ".join(parts)


def format_scored_item(item: ScoredItem) -> str:
    """Header + meta for a search hit, no content."""
    lines = [format_header(item.id, item.item_type.value, item.title, item.similarity)]
    meta = format_meta(item.tags, item.item_date)
    if meta:
        lines.append(f"  {meta}")
    return "\n".join(lines)


def format_bundle_item(item: BundleItem) -> str:
    """Header + meta + content; graph-derived items are marked."""
    lines = [format_header(item.id, item.item_type.value, item.title, item.score)]
    meta = format_meta(item.tags, item.item_date)
    if item.via_graph:
        meta = f"{meta}  [via graph]" if meta else "[via graph]"
    if meta:
        lines.append(f"  {meta}")
    lines.append(f"  {item.content}")
    return "\n".join(lines)


def format_item_full(item: KnowledgeItem) -> str:
    """Header + status line + meta + content."""
    lines = [format_header(item.id, item.item_type.value, item.title)]
    lines.append(
        f"  status: {item.status} | accessed(30d): {item.access_count_30d}"
        f" | referenced: {item.reference_count}"
    )
    meta = format_meta(item.tags, item.item_date)
    if meta:
        lines.append(f"  {meta}")
    lines.append(f"  {item.content}")
    return "\n".join(lines)


def format_related(item_id: str, related: list[RelatedItem]) -> str:
    """One line per neighbour: depth, edge and direction."""
    if not related:
        return f"No items related to {item_id}."
    lines = [f"{len(related)} item(s) related to {item_id}", ""]
    for rel in related:
        arrow = "->" if rel.direction == "outgoing" else "<-"
        lines.append(
            f"  [{rel.id}] {rel.item_type.value}"
            f" (depth {rel.depth}, {arrow} {rel.relationship_type})"
        )
    return "\n".join(lines)


def format_result_list(
    formatted_entries: list[str],
    header: str | None = None,
    note: str | None = None,
) -> str:
    """Count + note + entries joined by blank lines."""
    if not formatted_entries:
        return "No results found."

    lines: list[str] = []
    if header:
        lines.append(header)
    lines.append(f"{len(formatted_entries)} result(s)")
    if note:
        lines.append(f"Note: {note}")
    lines.append("")
    lines.append("\n\n".join(formatted_entries))
    return "\n".join(lines)


def format_bundle(bundle: Bundle) -> str:
    """Bucketed bundle: key decisions, known issues, recent changes."""
    if bundle.total_items == 0:
        return f"No relevant context found. (query {bundle.query_id})"

    sections = [f"{bundle.total_items} item(s) (query {bundle.query_id})"]
    for title, items in (
        ("Key decisions", bundle.key_decisions),
        ("Known issues", bundle.known_issues),
        ("Recent changes", bundle.recent_changes),
    ):
        if not items:
            continue
        body = "\n\n".join(format_bundle_item(i) for i in items)
        sections.append(f"## {title} ({len(items)})\n{body}")
    return "\n\n".join(sections)


def format_remediation(remediation: Remediation) -> str:
    """Pattern and severity, prior fixes, then generic next steps."""
    sections = [f"Pattern: {remediation.pattern} | severity: {remediation.severity}"]
    if remediation.similar_incidents:
        entries: list[str] = []
        for incident in remediation.similar_incidents:
            lines = [format_header(incident.id, "incident", incident.title, incident.similarity)]
            lines.append(f"  root cause: {incident.root_cause}")
            if incident.resolution:
                lines.append(f"  resolution: {incident.resolution}")
            if incident.prevention:
                lines.append(f"  prevention: {'; '.join(incident.prevention)}")
            entries.append("\n".join(lines))
        sections.append(
            f"## Similar resolved incidents ({len(entries)})\n" + "\n\n".join(entries)
        )
    else:
        sections.append("No similar resolved incidents.")
    steps = "\n".join(f"- {action}" for action in remediation.suggested_actions)
    sections.append(f"## Suggested actions\n{steps}")
    return "\n\n".join(sections)
