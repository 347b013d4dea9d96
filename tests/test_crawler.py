import pytest
from conftest import FAST_TIMINGS, DriverFactory, FakeDriver, render_item, render_page

from socowatcher.crawler import Crawler
from socowatcher.exceptions import CrawlFailed, DistrictNotFound


def build_crawler(catalog, driver_factory) -> Crawler:
    return Crawler(
        catalog=catalog,
        driver_factory=driver_factory,
        target_url="https://example.com/main.do",
        timings=FAST_TIMINGS,
        sleep=lambda seconds: None,
    )


def test_crawl_sentinel_returns_all_records(small_catalog, three_item_page):
    driver = FakeDriver(three_item_page)
    factory = DriverFactory(driver)

    result = build_crawler(small_catalog, factory).crawl_district("전체")

    assert result.success is True
    assert result.total_count == 3
    assert {record.district for record in result.data} == {"전체"}
    assert factory.opened == 1
    assert driver.closed is True


def test_crawl_unknown_district_does_not_open_browser(small_catalog, three_item_page):
    factory = DriverFactory(FakeDriver(three_item_page))

    with pytest.raises(DistrictNotFound):
        build_crawler(small_catalog, factory).crawl_district("없는구")

    assert factory.opened == 0


def test_crawl_district_applies_filter(small_catalog, three_item_page):
    mapo_page = render_page([render_item("합정 청년주택", home_code="102")])
    driver = FakeDriver(three_item_page, filtered={"마포구": mapo_page})

    result = build_crawler(small_catalog, DriverFactory(driver)).crawl_district("마포구")

    assert [record.name for record in result.data] == ["합정 청년주택"]
    assert result.data[0].district == "마포구"


def test_navigation_failure_degrades_to_empty_result(small_catalog, three_item_page, timeout_error):
    driver = FakeDriver(three_item_page, goto_error=timeout_error)

    result = build_crawler(small_catalog, DriverFactory(driver)).crawl_district("강남구")

    assert result.success is True
    assert result.data == ()
    assert result.total_count == 0
    assert driver.closed is True


def test_browser_launch_failure_raises_crawl_failed(small_catalog):

    def failing_factory():
        raise RuntimeError("chromium missing")

    with pytest.raises(CrawlFailed):
        build_crawler(small_catalog, failing_factory).crawl_district("전체")


def test_crawl_all_districts_runs_sequentially_on_one_session(small_catalog, three_item_page):
    gangnam_page = render_page([render_item("역삼 청년주택", home_code="101")])
    mapo_page = render_page([
        render_item("합정 청년주택", home_code="102"),
        render_item("망원 청년주택", home_code="104"),
    ])
    driver = FakeDriver(three_item_page, filtered={"강남구": gangnam_page, "마포구": mapo_page})
    factory = DriverFactory(driver)

    result = build_crawler(small_catalog, factory).crawl_all_districts()

    assert factory.opened == 1
    assert driver.closed is True
    assert result.total_count == 6
    assert [record.district for record in result.data] == [
        "전체", "전체", "전체", "강남구", "마포구", "마포구"
    ]
    gotos = [call for call in driver.calls if call[0] == "goto"]
    assert len(gotos) == 3


def test_crawl_all_continues_after_district_failure(small_catalog, three_item_page):

    class FlakyDriver(FakeDriver):

        def click_by_label(self, selector, label):
            if label == "강남구":
                raise RuntimeError("element detached")
            return super().click_by_label(selector, label)

    mapo_page = render_page([render_item("합정 청년주택", home_code="102")])
    driver = FlakyDriver(three_item_page, filtered={"마포구": mapo_page})

    result = build_crawler(small_catalog, DriverFactory(driver)).crawl_all_districts()

    districts = [record.district for record in result.data]
    assert "강남구" not in districts
    assert districts.count("마포구") == 1
    assert districts.count("전체") == 3


def test_crawl_result_serializes_to_wire_format(small_catalog, three_item_page):
    result = build_crawler(small_catalog, DriverFactory(FakeDriver(three_item_page))).crawl_district("전체")

    payload = result.to_dict()

    assert payload["success"] is True
    assert payload["totalCount"] == 3
    assert payload["data"][0]["detailUrl"].endswith("homeCode=101")
    assert "imageUrl" in payload["data"][0]
    assert "error" not in payload
