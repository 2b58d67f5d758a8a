"""
モデルをJSON互換の値へ変換する処理。

出力は配信時のJSON形式に合わせる。
- 任意項目は値がある場合のみ出力する
- extra はトップレベルへ展開する
- データは配列形式（wrapped=True の場合は `{"charts": [...]}`）で出力する

変換結果を normalize.py に渡すと同じモデルに戻る。
"""

from __future__ import annotations

from typing import Any, Dict, List, Union

from bmstable.models import ChartItem, Course, Table, TableData, TableHeader, TableInfo, Trophy
from bmstable.normalize import CHART_OPTIONAL_FIELDS


def chart_item_to_dict(item: ChartItem) -> Dict[str, Any]:
    out: Dict[str, Any] = {"level": item.level}
    for name in CHART_OPTIONAL_FIELDS:
        value = getattr(item, name)
        if value is not None:
            out[name] = value
    out.update(item.extra)
    return out


def trophy_to_dict(trophy: Trophy) -> Dict[str, Any]:
    return {
        "name": trophy.name,
        "missrate": trophy.missrate,
        "scorerate": trophy.scorerate,
    }


def course_to_dict(course: Course) -> Dict[str, Any]:
    """段位を charts 形式で出力する。旧形式の md5/sha256 配列には戻さない。"""
    return {
        "name": course.name,
        "constraint": list(course.constraint),
        "trophy": [trophy_to_dict(t) for t in course.trophy],
        "charts": [chart_item_to_dict(c) for c in course.charts],
    }


def header_to_dict(header: TableHeader) -> Dict[str, Any]:
    """
    ヘッダをヘッダJSON形式で出力する。

    course はグループが1つなら平坦な配列、複数なら配列の配列で出力する。
    json_url は取得元の記録でありドキュメントの内容ではないため出力しない。
    """
    groups = [[course_to_dict(c) for c in g] for g in header.course_groups]
    out: Dict[str, Any] = {
        "name": header.name,
        "symbol": header.symbol,
        "data_url": header.data_url,
        "course": groups[0] if len(groups) == 1 and groups[0] else groups,
        "level_order": list(header.level_order),
    }
    out.update(header.extra)
    return out


def data_to_json(data: TableData, wrapped: bool = False) -> Union[List[Any], Dict[str, Any]]:
    charts = [chart_item_to_dict(c) for c in data.charts]
    if wrapped:
        return {"charts": charts}
    return charts


def table_info_to_dict(info: TableInfo) -> Dict[str, Any]:
    out: Dict[str, Any] = {"name": info.name}
    if info.symbol is not None:
        out["symbol"] = info.symbol
    out["url"] = info.url
    out.update(info.extra)
    return out


def table_to_dict(table: Table) -> Dict[str, Any]:
    """表全体を {"header": ..., "data": [...]} 形式で出力する。"""
    return {
        "header": header_to_dict(table.header),
        "data": data_to_json(table.data),
    }
