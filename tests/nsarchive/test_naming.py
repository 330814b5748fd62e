"""Object-name parsing and URL derivation."""

from __future__ import annotations

from datetime import date

import pytest

from NSArchive.errors import MalformedRecordName
from NSArchive.naming import (
    CATEGORY_ORDER,
    Category,
    derive_url,
    object_name,
    parse_object_name,
)

# --- Test Cases ---


@pytest.mark.parametrize(
    ("name", "category", "expected"),
    [
        ("nations/2024-01-05-nations.xml.gz", Category.NATIONS, date(2024, 1, 5)),
        ("regions/2023-12-31-regions.xml.gz", Category.REGIONS, date(2023, 12, 31)),
        ("foundings/2024-02-29-foundings.json", Category.FOUNDINGS, date(2024, 2, 29)),
    ],
)
def test_parse_object_name_extracts_date(name: str, category: Category, expected: date) -> None:
    record = parse_object_name(name, category)

    assert record.date == expected
    assert record.category is category
    assert record.name == name
    assert record.url == f"file/nsarchive/{name}"


def test_parse_object_name_rejects_invalid_calendar_day() -> None:
    with pytest.raises(MalformedRecordName) as excinfo:
        parse_object_name("nations/2024-02-30-nations.xml.gz", Category.NATIONS)

    assert excinfo.value.name == "nations/2024-02-30-nations.xml.gz"
    assert excinfo.value.category == "nations"


@pytest.mark.parametrize(
    "name",
    [
        "nations/2024-13-01-nations.xml.gz",
        "nations/2024-1-05-nations.xml.gz",
        "nations/2024-01-5x-nations.xml.gz",
        "nations/+024-01-05-nations.xml.gz",
        "nations/٢٠٢٤-01-05-nations.xml.gz",
        "nations/20240105-nations.xml.gz",
        "nations/2024-01-05-regions.xml.gz",
        "nations/2024-01-05-nations.xml",
        "regions/2024-01-05-nations.xml.gz",
        "nations/2024-01-05-nations.xml.gz.tmp",
        "nations/",
    ],
)
def test_parse_object_name_rejects_template_deviations(name: str) -> None:
    with pytest.raises(MalformedRecordName):
        parse_object_name(name, Category.NATIONS)


def test_category_is_taken_from_caller_not_name() -> None:
    # A foundings name fed through the nations listing must fail, not be re-categorised.
    with pytest.raises(MalformedRecordName):
        parse_object_name("foundings/2024-01-05-foundings.json", Category.NATIONS)


def test_parse_object_name_prefers_explicit_url_and_keeps_metadata() -> None:
    record = parse_object_name(
        "foundings/2024-01-05-foundings.json",
        Category.FOUNDINGS,
        url="https://cdn.example/foundings/2024-01-05-foundings.json",
        size=1234,
        sha1="abc",
    )

    assert record.url == "https://cdn.example/foundings/2024-01-05-foundings.json"
    assert record.size == 1234
    assert record.sha1 == "abc"


def test_parse_object_name_uses_url_template() -> None:
    record = parse_object_name(
        "regions/2024-01-05-regions.xml.gz",
        Category.REGIONS,
        url_template="https://f000.backblazeb2.com/file/nsarchive/{name}",
    )

    assert record.url == "https://f000.backblazeb2.com/file/nsarchive/regions/2024-01-05-regions.xml.gz"


def test_object_name_matches_category_templates() -> None:
    day = date(2024, 3, 7)

    assert object_name(Category.NATIONS, day) == "nations/2024-03-07-nations.xml.gz"
    assert object_name(Category.REGIONS, day) == "regions/2024-03-07-regions.xml.gz"
    assert object_name(Category.FOUNDINGS, day) == "foundings/2024-03-07-foundings.json"
    for category in CATEGORY_ORDER:
        assert parse_object_name(object_name(category, day), category).date == day


def test_derive_url_substitutes_name() -> None:
    assert derive_url("a/b.json", "https://host/{name}?x=1") == "https://host/a/b.json?x=1"


def test_category_order_is_fixed() -> None:
    assert CATEGORY_ORDER == (Category.NATIONS, Category.REGIONS, Category.FOUNDINGS)
    assert [category.prefix for category in CATEGORY_ORDER] == ["nations/", "regions/", "foundings/"]
