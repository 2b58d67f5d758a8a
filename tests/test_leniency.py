"""寛容なJSON値変換のテスト。"""

from __future__ import annotations

import pytest

from bmstable.errors import MissingRequiredFieldError, WrongFieldTypeError
from bmstable.leniency import (
    num_or_str,
    optional_list,
    optional_str,
    require_number,
    require_str,
    split_extra,
    str_list,
)


@pytest.mark.light
@pytest.mark.parametrize("obj", [{}, {"title": None}, {"title": ""}])
def test_optional_str_treats_missing_null_and_empty_as_absent(obj):
    assert optional_str(obj, "title") is None


@pytest.mark.light
def test_optional_str_keeps_non_empty_string_verbatim():
    assert optional_str({"title": " 曲名 "}, "title") == " 曲名 "


@pytest.mark.light
def test_optional_str_rejects_number():
    with pytest.raises(WrongFieldTypeError):
        optional_str({"title": 1}, "title")


@pytest.mark.light
@pytest.mark.parametrize(
    "number, text",
    [(12, "12"), (0, "0"), (-1, "-1"), (1.5, "1.5"), (12.0, "12.0")],
)
def test_num_or_str_number_and_its_string_form_agree(number, text):
    """数値 N と文字列 "N" が同じ文字列に正規化されることを確認する。"""
    assert num_or_str(number) == text
    assert num_or_str(text) == text


@pytest.mark.light
@pytest.mark.parametrize("value", [None, True, [1], {"a": 1}])
def test_num_or_str_rejects_other_json_types(value):
    with pytest.raises(WrongFieldTypeError):
        num_or_str(value)


@pytest.mark.light
def test_split_extra_keeps_nested_values_untouched():
    nested = {"a": [1, {"b": None}]}
    obj = {"name": "x", "custom": nested, "n": 1}
    extra = split_extra(obj, ["name"])
    assert extra == {"custom": nested, "n": 1}
    assert extra["custom"] is nested


@pytest.mark.light
def test_require_str_missing_and_wrong_type():
    with pytest.raises(MissingRequiredFieldError):
        require_str({}, "name")
    with pytest.raises(MissingRequiredFieldError):
        require_str({"name": None}, "name")
    with pytest.raises(WrongFieldTypeError):
        require_str({"name": 3}, "name")


@pytest.mark.light
def test_require_number_rejects_bool_and_string():
    assert require_number({"missrate": 5}, "missrate") == 5.0
    with pytest.raises(WrongFieldTypeError):
        require_number({"missrate": True}, "missrate")
    with pytest.raises(WrongFieldTypeError):
        require_number({"missrate": "5"}, "missrate")


@pytest.mark.light
def test_optional_list_and_str_list():
    assert optional_list({}, "md5") == []
    assert optional_list({"md5": None}, "md5") == []
    assert str_list({"md5": ["a", "b"]}, "md5") == ["a", "b"]
    with pytest.raises(WrongFieldTypeError):
        optional_list({"md5": "a"}, "md5")
    with pytest.raises(WrongFieldTypeError):
        str_list({"md5": ["a", 1]}, "md5")


@pytest.mark.light
@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_num_or_str_rejects_non_finite_numbers(value):
    with pytest.raises(WrongFieldTypeError) as exc_info:
        num_or_str(value)
    assert exc_info.value.expected == "finite number"
