"""Turn a rendered listing page into housing complex records."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from .models import ListingRecord

logger = logging.getLogger(__name__)

SITE_ORIGIN = "https://soco.seoul.go.kr"
DETAIL_URL_TEMPLATE = (
    SITE_ORIGIN + "/youth/pgm/home/yohome/view.do?menuNo=400002&homeCode={home_code}"
)

ITEM_SELECTOR = "ul.theme_list li, ul.theme_slider li"
CLONE_CLASS = "slick-cloned"
NAME_SELECTOR = ".theme_detail h3"
PARAGRAPH_SELECTOR = ".theme_detail p"
IMAGE_SELECTOR = ".thum img"
STATUS_SELECTOR = ".icon span"

SUBWAY_MARKER = "지하철역"
ADDRESS_MARKER = "주소"

_HOME_VIEW_PATTERN = re.compile(r"homeView\((\d+)\)")


def extract_listings(html_text: str, district_name: str) -> List[ListingRecord]:
    """Extract listing records from a page snapshot.

    Slider clones and items whose title has not rendered yet are skipped.
    Every record is attributed to ``district_name``.
    """
    soup = BeautifulSoup(html_text, "html.parser")
    records: List[ListingRecord] = []
    skipped = 0
    for item in soup.select(ITEM_SELECTOR):
        if CLONE_CLASS in (item.get("class") or []):
            continue
        record = _build_record(item, district_name)
        if record is None:
            skipped += 1
            continue
        records.append(record)

    if skipped:
        logger.debug("Skipped %d list items without a name in %s", skipped, district_name)
    return records


def _build_record(item: Tag, district_name: str) -> Optional[ListingRecord]:
    name_element = item.select_one(NAME_SELECTOR)
    name = _text(name_element)
    if not name:
        return None

    subway, address = _scan_paragraphs(item)
    statuses = _collect_statuses(item)

    return ListingRecord(
        name=name,
        district=district_name,
        address=address or None,
        image_url=_resolve_image_url(item),
        detail_url=_resolve_detail_url(item),
        description=build_description(statuses, subway),
    )


def _scan_paragraphs(item: Tag) -> Tuple[str, str]:
    subway = ""
    address = ""
    for paragraph in item.select(PARAGRAPH_SELECTOR):
        text = _text(paragraph)
        if SUBWAY_MARKER in text:
            subway = _strip_label(paragraph, text)
        elif ADDRESS_MARKER in text:
            address = _strip_label(paragraph, text)
    return subway, address


def _strip_label(paragraph: Tag, text: str) -> str:
    label = _text(paragraph.find("span"))
    return text.replace(label, "", 1).strip()


def _collect_statuses(item: Tag) -> List[str]:
    statuses = []
    for icon in item.select(STATUS_SELECTOR):
        status = " ".join(icon.get_text().split())
        if status:
            statuses.append(status)
    return statuses


def _resolve_image_url(item: Tag) -> Optional[str]:
    image = item.select_one(IMAGE_SELECTOR)
    src = image.get("src") if image is not None else None
    if not src:
        return None
    return f"{SITE_ORIGIN}{src}"


def _resolve_detail_url(item: Tag) -> Optional[str]:
    link = item.find("a")
    href = (link.get("href") or "") if link is not None else ""
    match = _HOME_VIEW_PATTERN.search(href)
    if not match:
        return None
    return DETAIL_URL_TEMPLATE.format(home_code=match.group(1))


def build_description(statuses: List[str], subway: str) -> str:
    """Render the status summary stored as a listing's description."""
    if statuses:
        return f"상태: {', '.join(statuses)} | 지하철: {subway}"
    return f"지하철: {subway}"


def _text(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    return element.get_text().strip()
