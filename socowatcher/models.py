"""Core data models for socowatcher."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class District:
    """A crawl target: a sub-region and the label of its on-page filter control."""

    name: str
    filter_token: str


@dataclass(frozen=True)
class ListingRecord:
    """Represents a housing complex scraped from the listing page."""

    name: str
    district: str
    address: Optional[str] = None
    image_url: Optional[str] = None
    detail_url: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "district": self.district,
            "address": self.address,
            "imageUrl": self.image_url,
            "detailUrl": self.detail_url,
            "description": self.description,
        }


@dataclass
class PersistedRecord:
    """Represents a persisted housing complex from the database."""

    id: int
    name: str
    district: str
    address: Optional[str]
    image_url: Optional[str]
    detail_url: Optional[str]
    description: Optional[str]
    data_hash: Optional[str]
    created_at: str = ""
    updated_at: str = ""

    def as_listing(self) -> ListingRecord:
        return ListingRecord(
            name=self.name,
            district=self.district,
            address=self.address,
            image_url=self.image_url,
            detail_url=self.detail_url,
            description=self.description,
        )


@dataclass(frozen=True)
class CrawlResult:
    """Outcome of one crawl invocation (a single district or the full sweep)."""

    success: bool
    data: Tuple[ListingRecord, ...]
    total_count: int
    crawled_at: dt.datetime
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "data": [record.to_dict() for record in self.data],
            "totalCount": self.total_count,
            "crawledAt": self.crawled_at.isoformat(),
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


class Classification(str, Enum):
    """How a crawled record relates to persisted state."""

    NEW = "new"
    UNCHANGED = "unchanged"
    CHANGED = "changed"


@dataclass(frozen=True)
class PendingUpdate:
    """A persisted record whose content fingerprint drifted."""

    record_id: int
    record: ListingRecord
    data_hash: str
    previous_description: Optional[str]


@dataclass
class SyncPlan:
    """Storage actions and the change set derived from one crawl."""

    created: List[Tuple[ListingRecord, str]] = field(default_factory=list)
    updated: List[PendingUpdate] = field(default_factory=list)
    unchanged: List[ListingRecord] = field(default_factory=list)
    changes: List[ListingRecord] = field(default_factory=list)


@dataclass
class SyncResult:
    """Aggregated result returned by a sync run."""

    executed_at: str
    saved_count: int
    changes: List[ListingRecord]
    created: int = 0
    updated: int = 0


@dataclass
class Subscriber:
    """A notification subscriber."""

    email: str
    is_active: bool
    created_at: str
