"""
難易度表JSONの正規化処理。

作者ごとに形の異なるヘッダJSON・データJSON・一覧JSONを、
models.py の不変モデルへ変換する責務を持つ。

正規化方針:
- 認識するフィールドは一度だけ取り出し、残りは extra にそのまま保持する
- 段位の譜面は charts 配列を優先し、無い場合のみ旧形式の md5/sha256 配列から生成する
- データJSONは配列と `{"charts": [...]}` のどちらも同じ TableData にする
- 失敗時は部分的なモデルを返さず DeserializationError を送出する
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from bmstable.errors import (
    BmsTableError,
    DeserializationError,
    MalformedDocumentError,
    WrongFieldTypeError,
)
from bmstable.leniency import (
    num_or_str,
    optional_list,
    optional_str,
    require_number,
    require_object,
    require_str,
    split_extra,
    str_list,
)
from bmstable.models import (
    ChartItem,
    Course,
    TableData,
    TableHeader,
    TableInfo,
    TableList,
    TableListEntry,
    Trophy,
)

T = TypeVar("T")

LEGACY_LEVEL = "0"

CHART_OPTIONAL_FIELDS = (
    "md5",
    "sha256",
    "title",
    "subtitle",
    "artist",
    "subartist",
    "url",
    "url_diff",
)
CHART_FIELDS = ("level",) + CHART_OPTIONAL_FIELDS
HEADER_FIELDS = ("name", "symbol", "data_url", "course", "level_order")
TABLE_INFO_FIELDS = ("name", "symbol", "url")


def _each(values: Sequence[Any], fn: Callable[[Any], T], path: str) -> Tuple[T, ...]:
    """
    配列の各要素に fn を適用する。

    失敗した場合はエラーメッセージに要素位置（例: "course[2]"）を付けて再送出する。
    """
    out: List[T] = []
    for i, v in enumerate(values):
        try:
            out.append(fn(v))
        except DeserializationError as e:
            e.message = f"{path}[{i}]: {e.message}"
            e.args = (e.message,)
            raise
    return tuple(out)


def parse_chart_item(value: Any, default_level: Optional[str] = None) -> ChartItem:
    """
    譜面1件分のJSONオブジェクトを ChartItem に変換する。

    Args:
        value: JSON値。
        default_level: level が無い場合に使う値。None の場合は空文字。

    Returns:
        ChartItem。

    Raises:
        WrongFieldTypeError: オブジェクトでない、level が文字列/数値でない、
            任意項目が文字列でない場合。
    """
    obj = require_object(value, "chart")

    if "level" in obj:
        level = num_or_str(obj["level"], "level")
    else:
        level = default_level if default_level is not None else ""

    optional = {name: optional_str(obj, name) for name in CHART_OPTIONAL_FIELDS}

    return ChartItem(
        level=level,
        extra=split_extra(obj, CHART_FIELDS),
        **optional,
    )


def parse_trophy(value: Any) -> Trophy:
    """トロフィー1件を変換する。name/missrate/scorerate はすべて必須。"""
    obj = require_object(value, "trophy")
    return Trophy(
        name=require_str(obj, "name"),
        missrate=require_number(obj, "missrate"),
        scorerate=require_number(obj, "scorerate"),
    )


def legacy_hashes_to_charts(
    md5_list: Sequence[str] = (),
    sha256_list: Sequence[str] = (),
) -> Tuple[ChartItem, ...]:
    """
    旧形式のハッシュ配列から譜面一覧を生成する。

    md5 由来の譜面を先に、sha256 由来の譜面を後に並べる。
    両配列の同じ位置の要素を1譜面にまとめることはしない（位置の対応は保証されないため）。
    要素数は入力と一致させる。空文字のハッシュはハッシュ無し (None) の譜面になる。

    Args:
        md5_list: md5 文字列の配列。
        sha256_list: sha256 文字列の配列。

    Returns:
        level="0" の ChartItem のタプル。
    """
    charts: List[ChartItem] = []
    charts.extend(ChartItem(level=LEGACY_LEVEL, md5=h or None) for h in md5_list)
    charts.extend(ChartItem(level=LEGACY_LEVEL, sha256=h or None) for h in sha256_list)
    return tuple(charts)


def _parse_course_chart(value: Any) -> ChartItem:
    return parse_chart_item(value, default_level=LEGACY_LEVEL)


def parse_course(value: Any) -> Course:
    """
    段位1件を変換する。

    charts 配列があればそれを使い、md5/sha256 配列は無視する。
    charts が無い場合は md5/sha256 配列から譜面を生成する。

    Raises:
        DeserializationError: name が無い、各フィールドの型が不正な場合。
    """
    obj = require_object(value, "course")
    name = require_str(obj, "name")

    if obj.get("charts") is not None:
        charts = _each(optional_list(obj, "charts"), _parse_course_chart, "charts")
    else:
        charts = legacy_hashes_to_charts(str_list(obj, "md5"), str_list(obj, "sha256"))

    return Course(
        name=name,
        constraint=tuple(str_list(obj, "constraint")),
        trophy=_each(optional_list(obj, "trophy"), parse_trophy, "trophy"),
        charts=charts,
    )


def parse_course_groups(value: Any) -> Tuple[Tuple[Course, ...], ...]:
    """
    ヘッダの course フィールドをグループ構造で返す。

    - null/欠落: グループなし
    - 段位オブジェクトの配列: 1グループ
    - 段位オブジェクトの配列の配列: 複数グループ
    """
    if value is None:
        return ()
    if not isinstance(value, list):
        raise WrongFieldTypeError("course", "array", value)
    if not value:
        return ()

    if isinstance(value[0], list):
        groups = []
        for i, group in enumerate(value):
            if not isinstance(group, list):
                raise WrongFieldTypeError(f"course[{i}]", "array", group)
            groups.append(_each(group, parse_course, f"course[{i}]"))
        return tuple(groups)

    return (_each(value, parse_course, "course"),)


def _level_label(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return num_or_str(value, "level_order")


def parse_level_order(value: Any) -> Tuple[str, ...]:
    """level_order を文字列のタプルに変換する。数値は level と同じ規則で文字列化する。"""
    if value is None:
        return ()
    if not isinstance(value, list):
        raise WrongFieldTypeError("level_order", "array", value)
    return tuple(_level_label(v) for v in value)


def parse_header(value: Any, json_url: Optional[str] = None) -> TableHeader:
    """
    ヘッダJSONを TableHeader に変換する。

    json_url はドキュメントからは読まず、取得元が分かっている場合に呼び出し側が渡す。

    Args:
        value: ヘッダJSONの値。
        json_url: ヘッダJSONの取得元（絶対URL）。

    Returns:
        TableHeader。

    Raises:
        DeserializationError: name/symbol/data_url が無い、型が不正な場合。
    """
    obj = require_object(value, "header")
    groups = parse_course_groups(obj.get("course"))

    return TableHeader(
        name=require_str(obj, "name"),
        symbol=require_str(obj, "symbol"),
        data_url=require_str(obj, "data_url"),
        course=tuple(c for group in groups for c in group),
        course_groups=groups,
        level_order=parse_level_order(obj.get("level_order")),
        json_url=json_url,
        extra=split_extra(obj, HEADER_FIELDS),
    )


def parse_table_data(value: Any) -> TableData:
    """
    データJSONを TableData に変換する。

    配列の場合はそのまま譜面一覧、オブジェクトの場合は charts キーの配列を譜面一覧とする。

    Raises:
        MalformedDocumentError: 配列でも `{"charts": [...]}` でもない場合。
        DeserializationError: 譜面の変換に失敗した場合。
    """
    if isinstance(value, dict) and isinstance(value.get("charts"), list):
        value = value["charts"]
    if not isinstance(value, list):
        raise MalformedDocumentError(
            "data document is neither an array nor a {charts:[...]} object"
        )
    return TableData(charts=_each(value, parse_chart_item, "charts"))


def parse_table_info(value: Any, resolve: Optional[Callable[[str], str]] = None) -> TableInfo:
    """
    難易度表一覧の1エントリを変換する。

    Args:
        value: エントリのJSON値。
        resolve: url を絶対URLへ解決する関数。None の場合は文字列のまま。

    Raises:
        BmsTableError: name/url が無い、url を解決できない場合。
    """
    obj = require_object(value, "table list entry")
    url = require_str(obj, "url")
    if not url:
        raise WrongFieldTypeError("url", "non-empty string", url)

    return TableInfo(
        name=require_str(obj, "name"),
        url=resolve(url) if resolve is not None else url,
        symbol=optional_str(obj, "symbol"),
        extra=split_extra(obj, TABLE_INFO_FIELDS),
    )


def parse_table_list(value: Any, resolve: Optional[Callable[[str], str]] = None) -> TableList:
    """
    難易度表一覧JSONを変換する。

    不正なエントリがあっても全体は失敗させず、そのエントリを失敗として記録して続行する。

    Raises:
        MalformedDocumentError: 一覧JSONが配列でない場合。
    """
    if not isinstance(value, list):
        raise MalformedDocumentError("table list document is not an array")

    entries: List[TableListEntry] = []
    for i, raw in enumerate(value):
        try:
            info = parse_table_info(raw, resolve)
        except BmsTableError as e:
            entries.append(TableListEntry(index=i, error=e, raw=raw))
            continue
        entries.append(TableListEntry(index=i, info=info, raw=raw))
    return TableList(entries=tuple(entries))
