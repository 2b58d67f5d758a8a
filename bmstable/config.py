"""
設定ファイル(settings.yaml)の読み込み処理を提供するモジュール。

settings.yaml から難易度表の取得に必要な各種設定を読み込み、
アプリ内で扱いやすい dataclass に変換する。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import yaml

from bmstable.scraper import DEFAULT_USER_AGENT


@dataclass(frozen=True)
class HttpConfig:
    """
    HTTP取得設定。

    Attributes:
        timeout: リクエストのタイムアウト秒。
        user_agent: User-Agent ヘッダ。
        verify_tls: TLS証明書を検証するかどうか。
    """

    timeout: float = 30
    user_agent: str = DEFAULT_USER_AGENT
    verify_tls: bool = True


@dataclass(frozen=True)
class Settings:
    """
    アプリケーション全体設定。

    Attributes:
        http: HTTP取得設定。
        max_workers: 一覧の一括取得で並列に処理するエントリ数。
        log_level: ログレベル名。
        table_urls: 取得対象の難易度表URL。
        table_list_url: 難易度表一覧JSONのURL。
    """

    http: HttpConfig = HttpConfig()
    max_workers: int = 1
    log_level: str = "INFO"
    table_urls: Tuple[str, ...] = ()
    table_list_url: Optional[str] = None


def load_settings(path: str) -> Settings:
    """
    settings.yaml を読み込み Settings に変換する。

    省略されたキーは既定値を使う。

    Args:
        path: settings.yaml のファイルパス。

    Returns:
        Settingsオブジェクト。

    Raises:
        FileNotFoundError: 設定ファイルが存在しない場合。
        yaml.YAMLError: YAMLのパースに失敗した場合。
        ValueError: timeout/max_workers の数値変換に失敗した場合。
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    http_data = data.get("http") or {}
    list_url = data.get("table_list_url")

    return Settings(
        http=HttpConfig(
            timeout=float(http_data.get("timeout", 30)),
            user_agent=str(http_data.get("user_agent", DEFAULT_USER_AGENT)).strip(),
            verify_tls=bool(http_data.get("verify_tls", True)),
        ),
        max_workers=int(data.get("max_workers", 1)),
        log_level=str(data.get("log_level", "INFO")).upper(),
        table_urls=tuple(str(u).strip() for u in data.get("table_urls") or []),
        table_list_url=str(list_url).strip() if list_url else None,
    )
