import argparse
import json
import logging
import os
import sys

from bmstable.config import Settings, load_settings
from bmstable.errors import BmsTableError
from bmstable.models import Table
from bmstable.pipeline import TableResolver
from bmstable.scraper import Fetcher
from bmstable.serialize import table_info_to_dict, table_to_dict


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="BMS難易度表を取得して内容を表示する")
    parser.add_argument("urls", nargs="*", help="難易度表のページURLまたはヘッダJSONのURL")
    parser.add_argument("--list", dest="list_url", help="難易度表一覧JSONのURL（全表を取得する）")
    parser.add_argument("--json", action="store_true", help="正規化結果をJSONで出力する")
    parser.add_argument(
        "--settings",
        default=os.environ.get("BMSTABLE_SETTINGS", "settings.yaml"),
        help="設定ファイルのパス",
    )
    return parser


def summarize(table: Table) -> str:
    """表の概要を1行で返す。"""
    header = table.header
    return (
        f"{header.name} [{header.symbol}] "
        f"charts={len(table.data.charts)} "
        f"course_groups={len(header.course_groups)} courses={len(header.course)}"
    )


def _print_table(table: Table, as_json: bool) -> None:
    if as_json:
        print(json.dumps(table_to_dict(table), ensure_ascii=False, indent=2))
    else:
        print(summarize(table))


def main(argv=None) -> int:
    """
    難易度表を取得し、概要またはJSONを標準出力へ表示する。

    URL引数が無い場合は settings.yaml の table_urls / table_list_url を使う。
    設定ファイルが無い場合は既定値で動作する。

    Returns:
        int: すべて成功した場合は 0、1件でも失敗した場合は 1。
    """
    args = build_arg_parser().parse_args(argv)

    if os.path.exists(args.settings):
        settings = load_settings(args.settings)
    else:
        settings = Settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    urls = args.urls or list(settings.table_urls)
    list_url = args.list_url or (None if args.urls else settings.table_list_url)

    failed = 0
    with Fetcher(
        timeout=settings.http.timeout,
        user_agent=settings.http.user_agent,
        verify_tls=settings.http.verify_tls,
    ) as fetcher:
        resolver = TableResolver(fetch=fetcher, max_workers=settings.max_workers)

        for url in urls:
            try:
                table = resolver.fetch_table(url)
            except BmsTableError as e:
                print(f"❌ {url}: {e}", file=sys.stderr)
                failed += 1
                continue
            _print_table(table, args.json)

        if list_url:
            try:
                results = resolver.fetch_tables(list_url)
            except BmsTableError as e:
                print(f"❌ {list_url}: {e}", file=sys.stderr)
                return 1

            for result in results:
                if result.table is not None:
                    _print_table(result.table, args.json)
                    continue
                failed += 1
                entry = json.dumps(table_info_to_dict(result.info), ensure_ascii=False) if result.info else "-"
                print(f"❌ #{result.index} {entry}: {result.error}", file=sys.stderr)

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
