"""
難易度表の取得パイプライン。

入口URL → ヘッダJSON → データJSON の順に取得・解釈し、Table を組み立てる。

処理段階:
1. entry: 入口URLのテキストを取得し、ヘッダJSONかHTML(bmstableポインタ)かを判定する
2. header: ポインタの場合はその先を取得してヘッダJSONとする
3. data: ヘッダの data_url をヘッダ自身のURL基準で解決し、データJSONを取得する

1つの表の取得中に発生したエラーはそのまま呼び出し元へ伝播する。
一覧取得ではエントリ単位でエラーを記録し、残りのエントリの処理を続ける。

通信・URL結合・HTML抽出は差し替え可能な関数として受け取る。
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Tuple

from bmstable.errors import BmsTableError, TransportError, UnresolvableReferenceError
from bmstable.models import (
    HeaderPointer,
    Table,
    TableFetchResult,
    TableList,
    TableListEntry,
    TableRaw,
)
from bmstable.normalize import parse_header, parse_table_data, parse_table_list
from bmstable.parser import classify_header_content, extract_bmstable_url, load_json_text
from bmstable.scraper import Fetcher, is_absolute_url, resolve_url

logger = logging.getLogger(__name__)

FetchFunc = Callable[[str], str]
ResolveFunc = Callable[[str, str], str]
ExtractFunc = Callable[[str], Optional[str]]


@contextmanager
def _stage(stage: str, url: str) -> Iterator[None]:
    """送出された BmsTableError に段階名とURLを付与する（既に付与済みなら変更しない）。"""
    try:
        yield
    except BmsTableError as e:
        if e.stage is None:
            e.stage = stage
        if e.url is None:
            e.url = url
        raise


class TableResolver:
    """
    難易度表を取得して正規化するパイプライン。

    Args:
        fetch: URLを受け取りテキストを返す関数。None の場合は Fetcher() を使う。
        resolve: (基準URL, 相対URL) から絶対URLを返す関数。
        extract_meta_url: HTMLから bmstable のポインタURLを取り出す関数。
        max_workers: 一覧の一括取得で並列に処理するエントリ数。1 の場合は逐次処理。
    """

    def __init__(
        self,
        fetch: Optional[FetchFunc] = None,
        resolve: ResolveFunc = resolve_url,
        extract_meta_url: ExtractFunc = extract_bmstable_url,
        max_workers: int = 1,
    ):
        self.fetch = fetch if fetch is not None else Fetcher()
        self.resolve = resolve
        self.extract_meta_url = extract_meta_url
        self.max_workers = max(1, int(max_workers))

    def _fetch(self, url: str) -> str:
        """fetch を呼び、失敗を TransportError として送出する。"""
        try:
            return self.fetch(url)
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(f"fetch failed: {e}", url=url) from e

    def _resolve(self, base_url: str, relative: str) -> str:
        try:
            resolved = self.resolve(base_url, relative)
        except ValueError as e:
            raise UnresolvableReferenceError(
                f"cannot resolve '{relative}' against '{base_url}' ({e})"
            ) from e
        if not is_absolute_url(resolved):
            raise UnresolvableReferenceError(
                f"cannot resolve '{relative}' against '{base_url}'"
            )
        return resolved

    def fetch_table_full(self, url: str) -> Tuple[Table, TableRaw]:
        """
        入口URLから難易度表を取得し、解析結果と元テキストを返す。

        Args:
            url: 難易度表のページURL、またはヘッダJSONのURL（絶対URL）。

        Returns:
            (Table, TableRaw) のタプル。

        Raises:
            BmsTableError: いずれかの段階で失敗した場合。stage/url に失敗箇所が入る。
        """
        with _stage("entry", url):
            if not is_absolute_url(url):
                raise UnresolvableReferenceError(f"entry url is not absolute: {url}")
            entry_text = self._fetch(url)
            content = classify_header_content(entry_text, self.extract_meta_url)

        header_url, header_text = url, entry_text
        if isinstance(content, HeaderPointer):
            with _stage("entry", url):
                header_url = self._resolve(url, content.url)
            logger.debug("bmstable pointer %s -> %s", url, header_url)

            with _stage("header", header_url):
                header_text = self._fetch(header_url)
                content = classify_header_content(header_text, self.extract_meta_url)
                if isinstance(content, HeaderPointer):
                    raise UnresolvableReferenceError(
                        f"cycled header: {header_url} points to {content.url}"
                    )

        with _stage("header", header_url):
            header = parse_header(content.value, json_url=header_url)
            data_url = self._resolve(header_url, header.data_url)

        with _stage("data", data_url):
            data_text = self._fetch(data_url)
            data = parse_table_data(load_json_text(data_text))

        logger.debug("fetched table %s (%d charts)", header.name, len(data.charts))
        table = Table(header=header, data=data)
        raw = TableRaw(
            header_json_url=header_url,
            header_raw=header_text,
            data_json_url=data_url,
            data_raw=data_text,
        )
        return table, raw

    def fetch_table(self, url: str) -> Table:
        """入口URLから難易度表を取得する。"""
        table, _ = self.fetch_table_full(url)
        return table

    def fetch_table_list_full(self, url: str) -> Tuple[TableList, str]:
        """
        難易度表一覧JSONを取得し、解析結果と元テキストを返す。

        各エントリの url は一覧JSONのURLを基準に絶対URLへ解決する。
        表そのものは取得しない（必要になった時点で fetch_table を呼ぶ）。

        Raises:
            BmsTableError: 一覧JSON自体の取得・解析に失敗した場合。
        """
        with _stage("list", url):
            text = self._fetch(url)
            table_list = parse_table_list(
                load_json_text(text), lambda rel: self._resolve(url, rel)
            )

        for entry in table_list.failures:
            logger.warning("table list entry #%d skipped: %s", entry.index, entry.error)
        return table_list, text

    def fetch_table_list(self, url: str) -> TableList:
        """難易度表一覧JSONを取得する。"""
        table_list, _ = self.fetch_table_list_full(url)
        return table_list

    def _fetch_entry(self, entry: TableListEntry, full: bool) -> TableFetchResult:
        if entry.info is None:
            return TableFetchResult(index=entry.index, error=entry.error)
        try:
            table, raw = self.fetch_table_full(entry.info.url)
        except BmsTableError as e:
            logger.warning("table #%d (%s) failed: %s", entry.index, entry.info.name, e)
            return TableFetchResult(index=entry.index, info=entry.info, error=e)
        return TableFetchResult(
            index=entry.index,
            info=entry.info,
            table=table,
            raw=raw if full else None,
        )

    def fetch_tables(self, list_url: str, full: bool = False) -> List[TableFetchResult]:
        """
        難易度表一覧を取得し、各エントリの表もすべて取得する。

        1エントリの失敗は結果に記録し、残りのエントリは処理を続ける。
        結果は一覧の並び順で返す。

        Args:
            list_url: 難易度表一覧JSONのURL。
            full: True の場合、各結果に元テキスト (TableRaw) を含める。

        Returns:
            TableFetchResult のリスト。

        Raises:
            BmsTableError: 一覧JSON自体の取得・解析に失敗した場合。
        """
        table_list = self.fetch_table_list(list_url)
        entries = table_list.entries

        if self.max_workers == 1 or len(entries) <= 1:
            return [self._fetch_entry(e, full) for e in entries]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(lambda e: self._fetch_entry(e, full), entries))
