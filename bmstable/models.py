"""
データモデル定義モジュール。

難易度表のヘッダJSON・データJSON・一覧JSONを正規化した結果を保持する。
すべてのモデルは正規化時に一度だけ生成され、以後変更されない（frozen）。
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from bmstable.errors import BmsTableError, MalformedDocumentError


def _freeze_extra(obj: Any) -> None:
    """extra を入力から切り離した読み取り専用のマッピングに置き換える。"""
    try:
        frozen = MappingProxyType(copy.deepcopy(dict(obj.extra)))
    except RecursionError as e:
        raise MalformedDocumentError("extra field value is nested too deeply") from e
    object.__setattr__(obj, "extra", frozen)


@dataclass(frozen=True)
class ChartItem:
    """
    1譜面分の情報を保持するモデル。

    - level は表示用の難易度。数値で配信されても文字列に正規化する
    - その他の項目は空文字を「存在しない」(None) として扱う
    - 認識しないフィールドは extra に読み取り専用で保持する（hash の対象外）
    """

    level: str
    md5: Optional[str] = None
    sha256: Optional[str] = None
    title: Optional[str] = None
    subtitle: Optional[str] = None
    artist: Optional[str] = None
    subartist: Optional[str] = None
    url: Optional[str] = None
    url_diff: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        _freeze_extra(self)


@dataclass(frozen=True)
class Trophy:
    """
    段位のトロフィー条件。

    Attributes:
        name: トロフィー名（例: "goldmedal"）。
        missrate: 許容される最大ミス率（%）。
        scorerate: 必要な最小スコアレート（%）。
    """

    name: str
    missrate: float
    scorerate: float


@dataclass(frozen=True)
class Course:
    """段位（コース）1件分。charts は旧形式の md5/sha256 配列から導出される場合もある。"""

    name: str
    constraint: Tuple[str, ...] = ()
    trophy: Tuple[Trophy, ...] = ()
    charts: Tuple[ChartItem, ...] = ()


@dataclass(frozen=True)
class TableHeader:
    """
    難易度表のヘッダ情報。

    Attributes:
        name: 表の名称（例: "Satellite"）。
        symbol: 表の記号（例: "sl"）。
        data_url: データJSONの位置。ヘッダJSONに書かれた文字列のまま（相対URLの場合あり）。
        course: 全コースをグループ順に平坦化したもの。
        course_groups: `[[...], [...]]` 形式のグループ構造。平坦な配列は1グループとして扱う。
        level_order: 難易度の表示順。
        json_url: ヘッダJSON自身の取得元（絶対URL）。パイプラインが付与する。
        extra: 認識しないトップレベルフィールド。
    """

    name: str
    symbol: str
    data_url: str
    course: Tuple[Course, ...] = ()
    course_groups: Tuple[Tuple[Course, ...], ...] = ()
    level_order: Tuple[str, ...] = ()
    json_url: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        _freeze_extra(self)


@dataclass(frozen=True)
class TableData:
    """譜面一覧。配列形式と `{"charts": [...]}` 形式のどちらから読んでも同じ形になる。"""

    charts: Tuple[ChartItem, ...] = ()

    def find_by_md5(self, md5: str) -> Optional[ChartItem]:
        """md5 が一致する最初の譜面を返す。"""
        for chart in self.charts:
            if chart.md5 == md5:
                return chart
        return None

    def find_by_sha256(self, sha256: str) -> Optional[ChartItem]:
        """sha256 が一致する最初の譜面を返す。"""
        for chart in self.charts:
            if chart.sha256 == sha256:
                return chart
        return None


@dataclass(frozen=True)
class Table:
    """難易度表全体（ヘッダ + データ）。"""

    header: TableHeader
    data: TableData


@dataclass(frozen=True)
class TableRaw:
    """取得した元テキスト一式。診断用に解析結果と合わせて返す。"""

    header_json_url: str
    header_raw: str
    data_json_url: str
    data_raw: str


@dataclass(frozen=True)
class HeaderJson:
    """取得したテキストがそのままヘッダJSONだった場合。"""

    value: Dict[str, Any]


@dataclass(frozen=True)
class HeaderPointer:
    """取得したテキストがHTMLで、bmstable メタタグがヘッダJSONの位置を指していた場合。"""

    url: str


HeaderQueryContent = Union[HeaderJson, HeaderPointer]


@dataclass(frozen=True)
class TableInfo:
    """
    難易度表一覧の1エントリ。

    name/url 以外（tag1, tag2, comment, date, state など）は extra に保持する。
    url は一覧JSONの位置を基準に絶対URLへ解決済み。
    """

    name: str
    url: str
    symbol: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        _freeze_extra(self)


@dataclass(frozen=True)
class TableListEntry:
    """一覧JSONの1エントリの解析結果。成功時は info、失敗時は error を持つ。"""

    index: int
    info: Optional[TableInfo] = None
    error: Optional[BmsTableError] = None
    raw: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class TableList:
    """難易度表一覧。エントリ単位の失敗を含めて入力順に保持する。"""

    entries: Tuple[TableListEntry, ...] = ()

    @property
    def tables(self) -> Tuple[TableInfo, ...]:
        return tuple(e.info for e in self.entries if e.info is not None)

    @property
    def failures(self) -> Tuple[TableListEntry, ...]:
        return tuple(e for e in self.entries if not e.ok)


@dataclass(frozen=True)
class TableFetchResult:
    """一覧の1エントリについて表全体を取得した結果。"""

    index: int
    info: Optional[TableInfo] = None
    table: Optional[Table] = None
    raw: Optional[TableRaw] = None
    error: Optional[BmsTableError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
