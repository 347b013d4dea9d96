"""Error taxonomy shared across the crawler, sync runner and HTTP surface."""

from __future__ import annotations


class SocoWatcherError(Exception):
    """Base class for socowatcher failures."""


class NavigationTimeout(SocoWatcherError):
    """The target page failed to load or settle within its time budget."""


class DistrictNotFound(SocoWatcherError):
    """A requested district name is not part of the catalog."""

    def __init__(self, name: str):
        super().__init__(f"District not found: {name}")
        self.name = name


class CrawlFailed(SocoWatcherError):
    """A crawl invocation could not acquire its browser session."""


class SyncFailed(SocoWatcherError):
    """An unexpected failure interrupted a sync run."""


class AlreadySubscribed(SocoWatcherError):
    def __init__(self, email: str):
        super().__init__(f"Email is already subscribed: {email}")
        self.email = email


class SubscriberNotFound(SocoWatcherError):
    def __init__(self, email: str):
        super().__init__(f"Subscriber not found: {email}")
        self.email = email
