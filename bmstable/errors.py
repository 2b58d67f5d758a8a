"""
アプリケーション固有の例外定義モジュール。

難易度表ドキュメントの正規化、URL解決、HTTP取得で発生する例外を
分類して扱うために、基底例外および派生例外を定義する。
"""

from __future__ import annotations

from typing import Optional


class BmsTableError(Exception):
    """難易度表処理全体の基底例外。

    パイプラインで発生した場合は stage（entry/header/data/list）と url が
    付与され、どの段階のどのドキュメントで失敗したかをメッセージに含める。
    """

    def __init__(self, message: str = "", *, stage: Optional[str] = None, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.url = url

    def __str__(self) -> str:
        if self.stage is None and self.url is None:
            return self.message
        where = " ".join(x for x in [self.stage, self.url] if x)
        return f"[{where}] {self.message}"


class DeserializationError(BmsTableError):
    """JSON値からモデルへの変換に失敗した場合の例外。"""


class MalformedDocumentError(DeserializationError):
    """JSONとして解釈できない、またはトップレベルの型が想定外の場合の例外。"""


class MissingRequiredFieldError(DeserializationError):
    """必須フィールドが存在しない場合の例外。"""

    def __init__(self, field: str, *, stage: Optional[str] = None, url: Optional[str] = None):
        super().__init__(f"missing required field: {field}", stage=stage, url=url)
        self.field = field


class WrongFieldTypeError(DeserializationError):
    """フィールドのJSON型が想定と異なる場合の例外。"""

    def __init__(self, field: str, expected: str, actual: object = None):
        super().__init__(f"field '{field}' expected {expected}, got {_json_type_name(actual)}")
        self.field = field
        self.expected = expected


class UnresolvableReferenceError(BmsTableError):
    """bmstable メタタグが見つからない、または相対URLを解決できない場合の例外。"""


class TransportError(BmsTableError):
    """HTTP取得に失敗した場合の例外。原因となった例外は __cause__ に保持する。"""


def _json_type_name(value: object) -> str:
    """Python値に対応するJSON型名を返す。"""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
