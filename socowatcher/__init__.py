"""socowatcher package initialization."""

from .crawler import Crawler
from .db import Database
from .diff import apply_sync, compute_fingerprint, plan_sync
from .districts import DistrictCatalog, default_catalog
from .exceptions import (
    AlreadySubscribed,
    CrawlFailed,
    DistrictNotFound,
    NavigationTimeout,
    SubscriberNotFound,
    SyncFailed,
)
from .extractor import extract_listings
from .models import (
    Classification,
    CrawlResult,
    District,
    ListingRecord,
    PersistedRecord,
    SyncPlan,
    SyncResult,
)
from .runner import SyncRunner
from .session import PageSession, PlaywrightDriver, SessionTimings

__all__ = [
    "AlreadySubscribed",
    "Classification",
    "CrawlFailed",
    "CrawlResult",
    "Crawler",
    "Database",
    "District",
    "DistrictCatalog",
    "DistrictNotFound",
    "ListingRecord",
    "NavigationTimeout",
    "PageSession",
    "PersistedRecord",
    "PlaywrightDriver",
    "SessionTimings",
    "SubscriberNotFound",
    "SyncFailed",
    "SyncPlan",
    "SyncResult",
    "SyncRunner",
    "apply_sync",
    "compute_fingerprint",
    "default_catalog",
    "extract_listings",
    "plan_sync",
]
