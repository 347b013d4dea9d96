from typing import Dict, List, Optional

import pytest

from socowatcher.db import Database
from socowatcher.districts import DistrictCatalog
from socowatcher.exceptions import NavigationTimeout
from socowatcher.models import District
from socowatcher.session import SessionTimings


def render_item(
    name: str,
    home_code: Optional[str] = "101",
    subway: str = "2호선 역삼역",
    address: Optional[str] = "서울 강남구 역삼동 1",
    statuses: Optional[List[str]] = None,
    image: Optional[str] = "/upload/thumb.jpg",
    css_class: str = "",
) -> str:
    link = f"javascript:homeView({home_code})" if home_code else "#"
    image_html = f'<div class="thum"><img src="{image}"></div>' if image else ""
    address_html = f"<p><span>주소</span> {address}</p>" if address else ""
    status_html = "".join(f"<span>{status}</span>" for status in statuses or [])
    return f"""
    <li class="{css_class}">
      <a href="{link}">
        {image_html}
        <div class="theme_detail">
          <h3> {name} </h3>
          <p><span>지하철역</span> {subway}</p>
          {address_html}
        </div>
        <div class="icon">{status_html}</div>
      </a>
    </li>
    """


def render_page(items: List[str], buttons: Optional[List[str]] = None) -> str:
    buttons = buttons if buttons is not None else ["전체", "강남구", "마포구"]
    button_html = "".join(f"<li><button> {label} </button></li>" for label in buttons)
    return f"""
    <html><body>
      <ul class="theme_cate">{button_html}</ul>
      <ul class="theme_list">{''.join(items)}</ul>
    </body></html>
    """


class FakeDriver:
    """In-memory PageDriver; filter clicks swap the rendered page."""

    def __init__(
        self,
        initial: str,
        filtered: Optional[Dict[str, str]] = None,
        labels: Optional[List[str]] = None,
        goto_error: Optional[Exception] = None,
        wait_error: Optional[Exception] = None,
    ):
        self.initial = initial
        self.filtered = filtered or {}
        self.labels = labels if labels is not None else [" 전체 ", " 강남구 ", " 마포구 "]
        self.goto_error = goto_error
        self.wait_error = wait_error
        self.current = initial
        self.calls: List[tuple] = []
        self.closed = False

    def goto(self, url: str, timeout_ms: int) -> None:
        self.calls.append(("goto", url, timeout_ms))
        if self.goto_error is not None:
            raise self.goto_error
        self.current = self.initial

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        self.calls.append(("wait", selector, timeout_ms))
        if self.wait_error is not None:
            raise self.wait_error

    def click_by_label(self, selector: str, label: str) -> bool:
        self.calls.append(("click", label))
        for candidate in self.labels:
            if candidate.strip() == label:
                self.current = self.filtered.get(label, self.current)
                return True
        return False

    def content(self) -> str:
        return self.current

    def close(self) -> None:
        self.closed = True


class DriverFactory:
    """Hands out a prepared driver and remembers how often it was asked."""

    def __init__(self, driver: FakeDriver):
        self.driver = driver
        self.opened = 0

    def __call__(self) -> FakeDriver:
        self.opened += 1
        return self.driver


FAST_TIMINGS = SessionTimings(
    post_click_delay=0,
    post_ready_delay=0,
    unfiltered_settle_delay=0,
    between_districts_delay=0,
)


@pytest.fixture
def small_catalog() -> DistrictCatalog:
    return DistrictCatalog([
        District("전체", "전체"),
        District("강남구", "강남구"),
        District("마포구", "마포구"),
    ])


@pytest.fixture
def three_item_page() -> str:
    return render_page([
        render_item("역삼 청년주택", home_code="101", statuses=["모집중"]),
        render_item("합정 청년주택", home_code="102", subway="6호선 합정역",
                    address="서울 마포구 합정동 2"),
        render_item("신촌 청년주택", home_code="103", subway="2호선 신촌역",
                    address=None, statuses=["모집예정", "청년  공급"]),
    ])


@pytest.fixture
def database(tmp_path) -> Database:
    db = Database(path=tmp_path / "soco.db")
    db.initialize()
    return db


@pytest.fixture
def timeout_error() -> NavigationTimeout:
    return NavigationTimeout("Timed out loading page")
