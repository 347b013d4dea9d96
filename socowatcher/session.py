"""Browser-driven page session for the JavaScript-rendered listing page."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional, Protocol

from playwright.sync_api import Browser, Page, Playwright
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from .exceptions import NavigationTimeout
from .models import District

logger = logging.getLogger(__name__)

TARGET_URL = "https://soco.seoul.go.kr/youth/main/main.do"
LIST_READY_SELECTOR = "ul.theme_list li .theme_detail h3"
FILTER_BUTTON_SELECTOR = "ul.theme_cate li button"
VIEWPORT = {"width": 1920, "height": 1080}
BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


@dataclass(frozen=True)
class SessionTimings:
    """Timeouts (milliseconds) and settle delays (seconds) for one session."""

    navigation_timeout_ms: int = 60_000
    initial_list_timeout_ms: int = 30_000
    refresh_timeout_ms: int = 10_000
    post_click_delay: float = 2.0
    post_ready_delay: float = 1.0
    unfiltered_settle_delay: float = 1.0
    between_districts_delay: float = 1.0


class SessionState(str, Enum):
    IDLE = "idle"
    NAVIGATED = "navigated"
    FILTERED = "filtered"
    UNFILTERED = "unfiltered"
    READY = "ready"


class PageDriver(Protocol):
    """Page automation capability the session is written against."""

    def goto(self, url: str, timeout_ms: int) -> None:
        ...

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        ...

    def click_by_label(self, selector: str, label: str) -> bool:
        ...

    def content(self) -> str:
        ...

    def close(self) -> None:
        ...


DriverFactory = Callable[[], PageDriver]


class PlaywrightDriver:
    """PageDriver backed by a headless Chromium through Playwright."""

    def __init__(self, playwright: Playwright, browser: Browser, page: Page):
        self._playwright = playwright
        self._browser = browser
        self.page = page

    @classmethod
    def open(cls, headless: bool = True) -> "PlaywrightDriver":
        playwright = sync_playwright().start()
        try:
            browser = playwright.chromium.launch(headless=headless, args=BROWSER_ARGS)
            page = browser.new_page(viewport=VIEWPORT)
        except Exception:
            playwright.stop()
            raise
        logger.debug("Launched headless browser (headless=%s)", headless)
        return cls(playwright, browser, page)

    def goto(self, url: str, timeout_ms: int) -> None:
        try:
            self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(f"Timed out loading {url}") from exc

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        try:
            self.page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(f"Timed out waiting for {selector}") from exc

    def click_by_label(self, selector: str, label: str) -> bool:
        for control in self.page.query_selector_all(selector):
            text = (control.text_content() or "").strip()
            if text == label:
                control.click()
                return True
        return False

    def content(self) -> str:
        return self.page.content()

    def close(self) -> None:
        try:
            self._browser.close()
        finally:
            self._playwright.stop()


class PageSession:
    """Drives one page from Idle to a Ready state filtered to a district."""

    def __init__(
        self,
        driver: PageDriver,
        target_url: str = TARGET_URL,
        timings: SessionTimings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.driver = driver
        self.target_url = target_url
        self.timings = timings or SessionTimings()
        self.sleep = sleep
        self.state = SessionState.IDLE

    def navigate(self) -> None:
        self.driver.goto(self.target_url, self.timings.navigation_timeout_ms)
        self.driver.wait_for_selector(LIST_READY_SELECTOR,
                                      self.timings.initial_list_timeout_ms)
        self.state = SessionState.NAVIGATED
        logger.debug("Initial list loaded from %s", self.target_url)

    def apply_filter(self, district: District, unfiltered: bool = False) -> None:
        """Restrict the rendered list to ``district``.

        When no control carries the district's label the page is left as
        rendered and its current records are used.
        """
        if self.state is not SessionState.NAVIGATED:
            raise RuntimeError(f"Cannot filter a page in state {self.state.value}")

        if unfiltered:
            self.sleep(self.timings.unfiltered_settle_delay)
            self.state = SessionState.UNFILTERED
            return

        if not self.driver.click_by_label(FILTER_BUTTON_SELECTOR, district.filter_token):
            logger.warning(
                "No filter control labelled %r; using the page as currently rendered",
                district.filter_token,
            )
            self.state = SessionState.UNFILTERED
            return

        logger.info("Clicked filter control for %s", district.name)
        self.sleep(self.timings.post_click_delay)
        self.driver.wait_for_selector(LIST_READY_SELECTOR, self.timings.refresh_timeout_ms)
        self.sleep(self.timings.post_ready_delay)
        self.state = SessionState.FILTERED

    def snapshot(self) -> str:
        if self.state not in (SessionState.FILTERED, SessionState.UNFILTERED):
            raise RuntimeError(f"Cannot snapshot a page in state {self.state.value}")
        html_text = self.driver.content()
        self.state = SessionState.READY
        return html_text

    def load(self, district: District, unfiltered: bool = False) -> Optional[str]:
        """Navigate, filter and snapshot; failures yield ``None`` instead of raising."""
        self.state = SessionState.IDLE
        try:
            self.navigate()
            self.apply_filter(district, unfiltered=unfiltered)
            return self.snapshot()
        except NavigationTimeout as exc:
            logger.warning("Navigation timed out for district %s: %s", district.name, exc)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to load district %s", district.name)
        self.state = SessionState.IDLE
        return None


@contextmanager
def open_session(
    driver_factory: DriverFactory,
    target_url: str = TARGET_URL,
    timings: SessionTimings | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[PageSession]:
    """Acquire a browser for one crawl invocation and always tear it down."""
    driver = driver_factory()
    try:
        yield PageSession(driver, target_url=target_url, timings=timings, sleep=sleep)
    finally:
        try:
            driver.close()
        except Exception:  # noqa: BLE001
            logger.exception("Failed to close browser session")
