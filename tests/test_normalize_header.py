"""ヘッダJSON・難易度表一覧JSONの正規化テスト。"""

from __future__ import annotations

import pytest

from bmstable.errors import MalformedDocumentError, MissingRequiredFieldError, WrongFieldTypeError
from bmstable.normalize import parse_header, parse_table_list
from bmstable.scraper import resolve_url

BASE = {"name": "Test Table", "symbol": "test", "data_url": "score.json"}


def _course(name, *md5):
    return {"name": name, "constraint": ["grade_mirror"], "md5": list(md5)}


@pytest.mark.light
def test_parse_header_unknown_fields_go_to_extra():
    header = parse_header(dict(BASE, foo=1, tag={"nested": [1, 2]}))
    assert header.name == "Test Table"
    assert header.symbol == "test"
    assert header.data_url == "score.json"
    assert header.extra == {"foo": 1, "tag": {"nested": [1, 2]}}
    assert header.json_url is None
    assert header.course == ()


@pytest.mark.light
def test_parse_header_json_url_is_not_read_from_document():
    header = parse_header(dict(BASE, json_url="https://evil.test/h.json"), json_url="https://a.test/h.json")
    assert header.json_url == "https://a.test/h.json"
    assert header.extra == {"json_url": "https://evil.test/h.json"}


@pytest.mark.light
def test_parse_header_flat_course_list():
    header = parse_header(dict(BASE, course=[_course("Course 1", "abc123", "def456")]))
    assert len(header.course_groups) == 1
    assert [c.name for c in header.course] == ["Course 1"]
    assert [c.md5 for c in header.course[0].charts] == ["abc123", "def456"]


@pytest.mark.light
def test_parse_header_grouped_course_list_is_flattened_in_order():
    header = parse_header(
        dict(BASE, course=[[_course("Course 1", "a")], [_course("Course 2", "b"), _course("Course 3")]])
    )
    assert [len(g) for g in header.course_groups] == [1, 2]
    assert [c.name for c in header.course] == ["Course 1", "Course 2", "Course 3"]


@pytest.mark.light
@pytest.mark.parametrize("course", [None, []])
def test_parse_header_empty_course(course):
    header = parse_header(dict(BASE, course=course))
    assert header.course == ()
    assert header.course_groups == ()
    assert "course" not in header.extra


@pytest.mark.light
def test_parse_header_level_order():
    header = parse_header(dict(BASE, level_order=[0, 1, 2, "!i", 1.5]))
    assert header.level_order == ("0", "1", "2", "!i", "1.5")
    assert "level_order" not in header.extra


@pytest.mark.light
@pytest.mark.parametrize("missing", ["name", "symbol", "data_url"])
def test_parse_header_required_fields(missing):
    raw = dict(BASE)
    del raw[missing]
    with pytest.raises(MissingRequiredFieldError):
        parse_header(raw)


@pytest.mark.light
def test_parse_header_wrong_types():
    with pytest.raises(WrongFieldTypeError):
        parse_header(dict(BASE, data_url=1))
    with pytest.raises(WrongFieldTypeError):
        parse_header(dict(BASE, course={"name": "c"}))
    with pytest.raises(WrongFieldTypeError):
        parse_header([BASE])


@pytest.mark.light
def test_parse_table_list_resolves_urls_and_keeps_failures_in_order():
    table_list = parse_table_list(
        [
            {"name": ".WAS", "symbol": "．", "url": "was/table.html", "tag1": "SP"},
            {"symbol": "x", "url": "broken.html"},
            {"name": "Satellite", "url": "https://stellabms.xyz/sl/table.html"},
        ],
        lambda rel: resolve_url("https://example.test/list/tables.json", rel),
    )
    assert [e.ok for e in table_list.entries] == [True, False, True]
    assert [t.url for t in table_list.tables] == [
        "https://example.test/list/was/table.html",
        "https://stellabms.xyz/sl/table.html",
    ]
    assert table_list.tables[0].extra == {"tag1": "SP"}
    assert table_list.tables[1].symbol is None
    assert table_list.failures[0].index == 1
    assert isinstance(table_list.failures[0].error, MissingRequiredFieldError)


@pytest.mark.light
def test_parse_table_list_requires_array():
    with pytest.raises(MalformedDocumentError):
        parse_table_list({"tables": []})


@pytest.mark.light
def test_header_extra_is_detached_and_header_is_hashable():
    raw = dict(BASE, tag={"nested": [1, 2]})
    header = parse_header(raw)
    raw["tag"]["nested"].append(3)

    assert header.extra == {"tag": {"nested": [1, 2]}}
    with pytest.raises(TypeError):
        header.extra["tag"] = None
    assert hash(header) == hash(parse_header(BASE))


@pytest.mark.light
def test_level_order_rejects_non_finite_numbers():
    with pytest.raises(WrongFieldTypeError):
        parse_header(dict(BASE, level_order=[1, float("nan")]))
