"""HTTP request surface for crawling, syncing and subscriptions."""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from .crawler import Crawler
from .db import Database
from .districts import DistrictCatalog
from .exceptions import (
    AlreadySubscribed,
    CrawlFailed,
    DistrictNotFound,
    SubscriberNotFound,
    SyncFailed,
)
from .notifications import EmailNotifier
from .runner import SyncRunner

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class DistrictsResponse(BaseModel):
    districts: List[str]


class SyncResponse(BaseModel):
    success: bool
    savedCount: int
    message: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str


class SubscriptionRequest(BaseModel):
    email: str


class SubscriptionResponse(BaseModel):
    email: str
    isActive: bool


class EmailCheckRequest(BaseModel):
    email: str


class EmailCheckResponse(BaseModel):
    success: bool
    email: str


def create_app(
    runner: SyncRunner,
    crawler: Crawler,
    catalog: DistrictCatalog,
    database: Database,
    email_notifier: Optional[EmailNotifier] = None,
) -> FastAPI:
    """Build the FastAPI application around already-constructed components."""
    app = FastAPI(title="socowatcher")

    # Plain (non-async) endpoints: sync Playwright must stay off the event loop.

    @app.get("/districts", response_model=DistrictsResponse)
    def list_districts():
        logger.info("Received request to get districts list")
        return DistrictsResponse(districts=catalog.names())

    @app.get("/crawl")
    def crawl_district(district: Optional[str] = Query(default=None)) -> Dict[str, Any]:
        if district is None or not district.strip():
            raise HTTPException(status_code=400, detail="District parameter is required")
        logger.info("Received request to crawl district: %s", district)
        try:
            result = crawler.crawl_district(district)
        except DistrictNotFound as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except CrawlFailed as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return result.to_dict()

    @app.get("/crawl/all")
    def crawl_all_districts() -> Dict[str, Any]:
        logger.info("Received request to crawl all districts")
        try:
            result = crawler.crawl_all_districts()
        except CrawlFailed as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return result.to_dict()

    @app.post("/sync", response_model=SyncResponse)
    def sync():
        logger.info("Received request to sync housing complexes to database")
        try:
            result = runner.run_full_sync()
        except SyncFailed as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return SyncResponse(
            success=True,
            savedCount=result.saved_count,
            message=f"Successfully synced {result.saved_count} housing complexes to database",
        )

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(
            status="ok",
            timestamp=dt.datetime.now(dt.timezone.utc).isoformat(),
        )

    @app.post("/subscriptions", response_model=SubscriptionResponse, status_code=201)
    def subscribe(request: SubscriptionRequest):
        email = request.email.strip()
        if not _EMAIL_PATTERN.match(email):
            raise HTTPException(status_code=400, detail="Invalid email format")
        try:
            subscriber = database.subscribe(email)
        except AlreadySubscribed as exc:
            raise HTTPException(status_code=409, detail="Email is already subscribed") from exc
        return SubscriptionResponse(email=subscriber.email, isActive=subscriber.is_active)

    @app.delete("/subscriptions/{email}", response_model=SubscriptionResponse)
    def unsubscribe(email: str):
        try:
            subscriber = database.unsubscribe(email)
        except SubscriberNotFound as exc:
            raise HTTPException(status_code=404, detail="Subscriber not found") from exc
        return SubscriptionResponse(email=subscriber.email, isActive=subscriber.is_active)

    @app.post("/notifications/test", response_model=EmailCheckResponse)
    def send_test_email(request: EmailCheckRequest):
        email = request.email.strip()
        if not _EMAIL_PATTERN.match(email):
            raise HTTPException(status_code=400, detail="Invalid email format")
        if email_notifier is None:
            raise HTTPException(status_code=503, detail="Email notifications are not configured")
        if not email_notifier.send_test(email):
            raise HTTPException(status_code=500, detail="Failed to send test email")
        return EmailCheckResponse(success=True, email=email)

    return app
