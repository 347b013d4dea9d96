"""Core execution workflow for socowatcher."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Optional

from .crawler import Crawler
from .db import Database
from .diff import apply_sync, plan_sync
from .districts import DistrictCatalog
from .exceptions import SyncFailed
from .models import SyncPlan, SyncResult
from .notifications import Notifier

logger = logging.getLogger(__name__)


@dataclass
class SyncRunner:
    """Coordinates crawl, diff, and persistence steps."""

    database: Database
    crawler: Crawler
    catalog: DistrictCatalog
    notifier: Optional[Notifier] = None

    def init(self) -> None:
        """Initialize required persistence structures."""
        logger.info("Initializing database at %s", self.database.path)
        self.database.initialize()

    def run_full_sync(self, dry_run: bool = False) -> SyncResult:
        """Crawl the unfiltered listing and reconcile it with storage.

        Only the sentinel district is crawled. Any failure is reported as
        ``SyncFailed``; writes already made for earlier records are kept.
        """
        executed_at = dt.datetime.now(dt.timezone.utc).isoformat()
        sentinel = self.catalog.sentinel
        logger.info("Starting sync for %s", sentinel.name)

        try:
            crawl = self.crawler.crawl_district(sentinel.name)
            if dry_run:
                plan = plan_sync(crawl.data, self.database.find_all())
            else:
                plan = apply_sync(self.database, crawl.data)
        except Exception as exc:
            logger.exception("Sync to database failed: %s", exc)
            self._record_run(executed_at, "error", f"sync_failed: {exc}")
            raise SyncFailed("Failed to sync to database") from exc

        status = "dry_run" if dry_run else "success"
        note = _format_note(plan, prefix="dry-run " if dry_run else "")
        self._record_run(executed_at, status, note)
        logger.info(
            "Sync completed. Saved %d complexes. Changes detected: %d",
            crawl.total_count,
            len(plan.changes),
        )
        return SyncResult(
            executed_at=executed_at,
            saved_count=crawl.total_count,
            changes=list(plan.changes),
            created=len(plan.created),
            updated=len(plan.updated),
        )

    def run_and_notify(self, dry_run: bool = False) -> SyncResult:
        """Scheduled entry point: sync, then hand the change set to the notifier."""
        result = self.run_full_sync(dry_run=dry_run)
        if not result.changes:
            logger.info("No significant changes detected.")
            return result
        if dry_run or self.notifier is None:
            logger.info("Skipping notification for %d change(s)", len(result.changes))
            return result

        logger.info("Changes detected: %d items. Sending notifications...",
                    len(result.changes))
        try:
            self.notifier.send_change_notification(result.changes)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to dispatch change notification")
        return result

    def _record_run(self, executed_at: str, status: str, note: str) -> None:
        try:
            self.database.add_run(executed_at=executed_at, status=status, notes=note)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to record run at %s", executed_at)


def _format_note(plan: SyncPlan, prefix: str = "") -> str:
    """Render a concise run note summarizing the sync outcome."""
    return (
        f"{prefix}"
        f"complexes(+{len(plan.created)} / ~{len(plan.updated)} / ={len(plan.unchanged)}) "
        f"changes({len(plan.changes)})"
    )
