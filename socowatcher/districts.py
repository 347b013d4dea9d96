"""District catalog for the Seoul youth housing listing page."""

from __future__ import annotations

from typing import Iterable, List, Tuple

from .exceptions import DistrictNotFound
from .models import District

SENTINEL_NAME = "전체"

DISTRICT_NAMES: Tuple[str, ...] = (
    SENTINEL_NAME,
    "강남구",
    "강동구",
    "강북구",
    "강서구",
    "관악구",
    "광진구",
    "구로구",
    "금천구",
    "노원구",
    "도봉구",
    "동대문구",
    "동작구",
    "마포구",
    "서대문구",
    "서초구",
    "성동구",
    "성북구",
    "송파구",
    "양천구",
    "영등포구",
    "용산구",
    "은평구",
    "종로구",
    "중구",
    "중랑구",
)


class DistrictCatalog:
    """Ordered, immutable set of crawl targets. The first entry is the sentinel."""

    def __init__(self, districts: Iterable[District]):
        self._districts: Tuple[District, ...] = tuple(districts)
        if not self._districts:
            raise ValueError("District catalog must not be empty")
        tokens = [district.filter_token for district in self._districts]
        if len(set(tokens)) != len(tokens):
            raise ValueError("District filter tokens must be unique")

    @property
    def sentinel(self) -> District:
        return self._districts[0]

    def is_sentinel(self, district: District) -> bool:
        return district == self.sentinel

    def list(self) -> Tuple[District, ...]:
        return self._districts

    def names(self) -> List[str]:
        return [district.name for district in self._districts]

    def find(self, name: str) -> District:
        for district in self._districts:
            if district.name == name:
                return district
        raise DistrictNotFound(name)

    def __len__(self) -> int:
        return len(self._districts)

    def __iter__(self):
        return iter(self._districts)


def default_catalog() -> DistrictCatalog:
    """Build the catalog of Seoul districts; filter labels equal district names."""
    return DistrictCatalog(District(name=name, filter_token=name) for name in DISTRICT_NAMES)
