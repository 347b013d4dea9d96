"""Crawl invocations over the district catalog."""

from __future__ import annotations

import datetime as dt
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List

from .districts import DistrictCatalog
from .exceptions import CrawlFailed
from .extractor import extract_listings
from .models import CrawlResult, District, ListingRecord
from .session import (
    TARGET_URL,
    DriverFactory,
    PageSession,
    PlaywrightDriver,
    SessionTimings,
    open_session,
)

logger = logging.getLogger(__name__)


@dataclass
class Crawler:
    """Opens a fresh browser per invocation and extracts listing records."""

    catalog: DistrictCatalog
    driver_factory: DriverFactory = field(default=PlaywrightDriver.open)
    target_url: str = TARGET_URL
    timings: SessionTimings = field(default_factory=SessionTimings)
    sleep: Callable[[float], None] = field(default=time.sleep)

    def crawl_district(self, name: str) -> CrawlResult:
        """Crawl one district. Unknown names raise ``DistrictNotFound``."""
        district = self.catalog.find(name)
        logger.info("Starting to crawl district: %s", district.name)

        try:
            with open_session(
                    self.driver_factory,
                    target_url=self.target_url,
                    timings=self.timings,
                    sleep=self.sleep,
            ) as session:
                records = self._crawl_page(session, district)
        except Exception as exc:
            logger.exception("District crawling failed: %s", district.name)
            raise CrawlFailed(f"Failed to crawl district: {district.name}") from exc

        logger.info("District crawling completed. Found %d complexes", len(records))
        return _result(records)

    def crawl_all_districts(self) -> CrawlResult:
        """Crawl every district in catalog order on a single session."""
        logger.info("Starting to crawl all districts")
        records: List[ListingRecord] = []

        try:
            with open_session(
                    self.driver_factory,
                    target_url=self.target_url,
                    timings=self.timings,
                    sleep=self.sleep,
            ) as session:
                for index, district in enumerate(self.catalog.list()):
                    if index:
                        self.sleep(self.timings.between_districts_delay)
                    logger.info("Crawling district: %s", district.name)
                    records.extend(self._crawl_page(session, district))
        except Exception as exc:
            logger.exception("Crawling all districts failed")
            raise CrawlFailed("Failed to crawl all districts") from exc

        logger.info("Crawling completed. Total complexes: %d", len(records))
        return _result(records)

    def _crawl_page(self, session: PageSession,
                    district: District) -> List[ListingRecord]:
        html_text = session.load(district,
                                 unfiltered=self.catalog.is_sentinel(district))
        if html_text is None:
            return []
        try:
            records = extract_listings(html_text, district.name)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to extract complexes for %s", district.name)
            return []
        logger.info("Found %d complexes in %s", len(records), district.name)
        return records


def _result(records: List[ListingRecord]) -> CrawlResult:
    return CrawlResult(
        success=True,
        data=tuple(records),
        total_count=len(records),
        crawled_at=dt.datetime.now(dt.timezone.utc),
    )
