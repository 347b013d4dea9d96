from conftest import render_item, render_page

from socowatcher.extractor import build_description, extract_listings


def test_extract_listings_reads_all_fields(three_item_page):
    records = extract_listings(three_item_page, "전체")

    assert [record.name for record in records] == [
        "역삼 청년주택",
        "합정 청년주택",
        "신촌 청년주택",
    ]
    first = records[0]
    assert first.district == "전체"
    assert first.address == "서울 강남구 역삼동 1"
    assert first.image_url == "https://soco.seoul.go.kr/upload/thumb.jpg"
    assert first.detail_url == (
        "https://soco.seoul.go.kr/youth/pgm/home/yohome/view.do"
        "?menuNo=400002&homeCode=101"
    )
    assert first.description == "상태: 모집중 | 지하철: 2호선 역삼역"


def test_extract_listings_collapses_status_whitespace(three_item_page):
    records = extract_listings(three_item_page, "전체")

    assert records[2].description == "상태: 모집예정, 청년 공급 | 지하철: 2호선 신촌역"
    assert records[2].address is None


def test_description_without_statuses_only_has_subway(three_item_page):
    records = extract_listings(three_item_page, "전체")

    assert records[1].description == "지하철: 6호선 합정역"


def test_items_without_name_are_skipped():
    html = render_page([
        render_item("   "),
        render_item("마포 청년주택"),
    ])

    records = extract_listings(html, "마포구")

    assert [record.name for record in records] == ["마포 청년주택"]


def test_slider_clones_are_skipped():
    html = f"""
    <html><body>
      <ul class="theme_slider">
        {render_item("원본 주택", home_code="7", css_class="slick-slide")}
        {render_item("원본 주택", home_code="7", css_class="slick-slide slick-cloned")}
      </ul>
    </body></html>
    """

    records = extract_listings(html, "전체")

    assert len(records) == 1
    assert records[0].name == "원본 주택"


def test_missing_link_and_image_leave_fields_unset():
    html = render_page([render_item("링크 없음", home_code=None, image=None)])

    record = extract_listings(html, "전체")[0]

    assert record.detail_url is None
    assert record.image_url is None


def test_empty_page_yields_no_records():
    assert extract_listings("<html><body></body></html>", "전체") == []


def test_build_description():
    assert build_description([], "1호선 시청역") == "지하철: 1호선 시청역"
    assert build_description(["모집중", "마감임박"], "") == "상태: 모집중, 마감임박 | 지하철: "
