import pytest

from socowatcher.districts import DISTRICT_NAMES, DistrictCatalog, default_catalog
from socowatcher.exceptions import DistrictNotFound
from socowatcher.models import District


def test_default_catalog_starts_with_sentinel():
    catalog = default_catalog()

    assert len(catalog) == 26
    assert catalog.sentinel == District("전체", "전체")
    assert catalog.names()[0] == "전체"
    assert catalog.names() == list(DISTRICT_NAMES)


def test_find_returns_matching_district():
    catalog = default_catalog()

    assert catalog.find("강남구") == District("강남구", "강남구")


def test_find_unknown_district_raises():
    catalog = default_catalog()

    with pytest.raises(DistrictNotFound) as excinfo:
        catalog.find("없는구")
    assert excinfo.value.name == "없는구"
    assert "없는구" in str(excinfo.value)


def test_find_requires_exact_name():
    catalog = default_catalog()

    with pytest.raises(DistrictNotFound):
        catalog.find(" 강남구")


def test_catalog_rejects_duplicate_tokens():
    with pytest.raises(ValueError):
        DistrictCatalog([District("전체", "전체"), District("강남", "전체")])


def test_catalog_rejects_empty():
    with pytest.raises(ValueError):
        DistrictCatalog([])


def test_filter_tokens_are_unique_in_default_catalog():
    tokens = [district.filter_token for district in default_catalog().list()]
    assert len(tokens) == len(set(tokens))
