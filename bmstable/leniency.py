"""
寛容なJSON値変換ユーティリティ。

作者ごとに表記が揺れる難易度表JSONを読むための共通ルールをまとめる。
- 空文字・null・キー欠落はすべて「存在しない」(None) とみなす
- level のような表示値は数値でも文字列でも受け付け、文字列へ正規化する
- 認識しないキーは値を加工せず extra に集める
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional

from bmstable.errors import MissingRequiredFieldError, WrongFieldTypeError

_MISSING = object()


def optional_str(obj: Dict[str, Any], key: str) -> Optional[str]:
    """
    任意の文字列フィールドを取り出す。

    Args:
        obj: JSONオブジェクト。
        key: フィールド名。

    Returns:
        空でない文字列。キー欠落・null・空文字の場合は None。

    Raises:
        WrongFieldTypeError: 文字列以外の型だった場合。
    """
    value = obj.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise WrongFieldTypeError(key, "string", value)
    return value


def num_or_str(value: Any, field: str = "level") -> str:
    """
    数値または文字列を表示用文字列に正規化する。

    - 文字列はそのまま
    - 整数は str(int)
    - 浮動小数は repr(float)（往復可能な最短表記。例: 1.5, 12.0）

    Args:
        value: JSON値。
        field: エラーメッセージ用のフィールド名。

    Returns:
        正規化済み文字列。

    Raises:
        WrongFieldTypeError: 文字列・数値以外（bool, null, 配列, オブジェクト）、または NaN・無限大の場合。
    """
    # bool は int のサブクラスなので先に弾く
    if isinstance(value, bool):
        raise WrongFieldTypeError(field, "string or number", value)
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise WrongFieldTypeError(field, "finite number", value)
        return repr(value)
    raise WrongFieldTypeError(field, "string or number", value)


def split_extra(obj: Dict[str, Any], known: Iterable[str]) -> Dict[str, Any]:
    """known に含まれないキーを値そのままで集める。"""
    known_keys = frozenset(known)
    return {k: v for k, v in obj.items() if k not in known_keys}


def require_object(value: Any, what: str) -> Dict[str, Any]:
    """JSONオブジェクトであることを確認して返す。"""
    if not isinstance(value, dict):
        raise WrongFieldTypeError(what, "object", value)
    return value


def require_str(obj: Dict[str, Any], key: str) -> str:
    """必須の文字列フィールドを取り出す。空文字は許容する。"""
    value = obj.get(key, _MISSING)
    if value is _MISSING or value is None:
        raise MissingRequiredFieldError(key)
    if not isinstance(value, str):
        raise WrongFieldTypeError(key, "string", value)
    return value


def require_number(obj: Dict[str, Any], key: str) -> float:
    """必須の数値フィールドを float で取り出す。"""
    value = obj.get(key, _MISSING)
    if value is _MISSING or value is None:
        raise MissingRequiredFieldError(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise WrongFieldTypeError(key, "number", value)
    return float(value)


def optional_list(obj: Dict[str, Any], key: str) -> List[Any]:
    """
    任意の配列フィールドを取り出す。

    キー欠落・null は空リストとする。配列以外の型はエラー。
    """
    value = obj.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise WrongFieldTypeError(key, "array", value)
    return value


def str_list(obj: Dict[str, Any], key: str) -> List[str]:
    """任意の文字列配列フィールドを取り出す。要素が文字列でなければエラー。"""
    values = optional_list(obj, key)
    for v in values:
        if not isinstance(v, str):
            raise WrongFieldTypeError(f"{key}[]", "string", v)
    return values
