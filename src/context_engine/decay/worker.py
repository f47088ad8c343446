"""Scheduled decay/archival worker."""

import asyncio
import logging
from datetime import date

from context_engine.db.database import Database
from context_engine.db.queries import list_items, update_status
from context_engine.decay.scoring import should_archive
from context_engine.models.item import ARCHIVED
from context_engine.models.report import DecayReport

logger = logging.getLogger(__name__)


class DecayWorker:
    """Archives stale items so they drop out of similarity search.

    Passes never overlap within a process. Archival is one-way.
    """

    def __init__(self, db: Database) -> None:
        """Initialize with a database connection."""
        self._db = db
        self._lock = asyncio.Lock()

    async def run_decay_pass(self, today: date | None = None) -> DecayReport:
        """Score every non-archived item and archive those below threshold."""
        async with self._lock:
            candidates = await list_items(self._db, exclude_status=ARCHIVED)
            report = DecayReport(scanned_count=len(candidates))
            for item in candidates:
                if not should_archive(item, today):
                    continue
                if await update_status(self._db, item.id, ARCHIVED):
                    report.archived_ids.append(item.id)
            report.archived_count = len(report.archived_ids)

        if report.archived_count:
            logger.info(
                "Decay pass archived %d of %d items: %s",
                report.archived_count,
                report.scanned_count,
                ", ".join(report.archived_ids),
            )
        else:
            logger.info("Decay pass scanned %d items, nothing archived", report.scanned_count)
        return report

    async def run_forever(self, interval_hours: float = 24.0) -> None:
        """Run a pass every ``interval_hours`` until cancelled."""
        interval = interval_hours * 3600
        while True:
            try:
                await self.run_decay_pass()
            except Exception:
                logger.exception("Decay pass failed")
            await asyncio.sleep(interval)
