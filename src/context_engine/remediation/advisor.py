"""Suggest fixes for an error from similar resolved incidents."""

import logging

from context_engine.db.database import Database
from context_engine.db.queries import nearest_items
from context_engine.events.patterns import (
    UNKNOWN_PATTERN,
    classify_error_pattern,
    severity_for_pattern,
    suggested_actions,
)
from context_engine.models.event import Remediation, SimilarIncident
from context_engine.models.item import Incident, ItemType
from context_engine.search.embeddings import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5
RESOLVED = "resolved"


async def suggest_remediation(
    db: Database,
    embedder: EmbeddingProvider,
    error_message: str,
    stack_trace: str | None = None,
    pattern: str | None = None,
    top_k: int = DEFAULT_TOP_K,
) -> Remediation:
    """Classify an error and find the resolved incidents closest to it.

    ``pattern`` overrides the keyword classification. A known pattern also
    restricts the candidates to incidents recorded with that pattern. Raises
    ``EmbeddingUnavailable`` if the error text cannot be embedded.
    """
    pattern = pattern or classify_error_pattern(stack_trace, error_message)
    remediation = Remediation(
        pattern=pattern,
        severity=severity_for_pattern(pattern),
        suggested_actions=suggested_actions(pattern),
    )
    if top_k <= 0:
        return remediation

    text = " ".join(t for t in (error_message, stack_trace) if t)
    embedding = await embedder.embed(text)
    matches = await nearest_items(
        db,
        embedding,
        ItemType.INCIDENT,
        limit=top_k,
        status=RESOLVED,
        pattern=None if pattern == UNKNOWN_PATTERN else pattern,
    )
    for item, distance in matches:
        if not isinstance(item, Incident):
            continue
        remediation.similar_incidents.append(
            SimilarIncident(
                id=item.id,
                title=item.title,
                root_cause=item.root_cause,
                resolution=item.resolution,
                prevention=item.prevention,
                similarity=round(1.0 - distance, 2),
                item_date=item.item_date,
            )
        )
    logger.debug(
        "Remediation for %s: %d similar resolved incidents",
        pattern,
        len(remediation.similar_incidents),
    )
    return remediation
