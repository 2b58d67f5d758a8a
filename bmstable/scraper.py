"""
HTTP取得処理。

指定されたURLからテキストを取得する責務と、相対URLを絶対URLへ解決する責務を持つ。
取得したテキストの解釈は parser.py / normalize.py 側で行い、本モジュールは通信のみを担当する。

例外方針:
- requests 由来の例外は TransportError に変換して上位へ伝播する。
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urljoin, urlsplit

import requests

from bmstable.errors import TransportError, UnresolvableReferenceError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "bms-table/0.1"


def is_absolute_url(url: str) -> bool:
    """scheme と host を持つ絶対URLかどうかを返す。"""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def resolve_url(base_url: str, relative: str) -> str:
    """
    base_url を基準に relative を絶対URLへ解決する。

    ブラウザが現在のドキュメントから相対リンクを解決するのと同じ規則に従う。

    Args:
        base_url: 基準となる絶対URL。
        relative: 相対または絶対URL。

    Returns:
        絶対URL。

    Raises:
        UnresolvableReferenceError: URLとして解釈できない、または解決結果が絶対URLにならない場合。
    """
    try:
        resolved = urljoin(base_url, relative.strip())
    except ValueError as e:
        raise UnresolvableReferenceError(
            f"cannot resolve '{relative}' against '{base_url}' ({e})"
        ) from e
    if not is_absolute_url(resolved):
        raise UnresolvableReferenceError(
            f"cannot resolve '{relative}' against '{base_url}'"
        )
    return resolved


class Fetcher:
    """
    requests.Session を使うテキスト取得器。

    配信元の多くは Shift_JIS など UTF-8 以外で配信されるため、
    レスポンスの文字コードは apparent_encoding で推定する。

    Args:
        timeout: requests に渡すタイムアウト秒。
        user_agent: User-Agent ヘッダ。
        verify_tls: TLS証明書を検証するかどうか。証明書の切れた個人サイト向けに無効化できる。
        session: 使い回す requests.Session。None の場合は新規作成する。
    """

    def __init__(
        self,
        timeout: float = 30,
        user_agent: str = DEFAULT_USER_AGENT,
        verify_tls: bool = True,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.verify_tls = verify_tls
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent

    def __call__(self, url: str) -> str:
        return self.fetch_text(url)

    def fetch_text(self, url: str) -> str:
        """
        指定URLへHTTP GETを行い、レスポンス文字列を返す。

        Args:
            url: 取得対象URL。

        Returns:
            レスポンス本文の文字列。

        Raises:
            TransportError: HTTPエラーや通信失敗が発生した場合。
        """
        logger.debug("GET %s", url)
        try:
            r = self.session.get(url, timeout=self.timeout, verify=self.verify_tls)
            r.raise_for_status()
            r.encoding = r.apparent_encoding
            return r.text
        except requests.RequestException as e:
            raise TransportError(f"HTTP fetch failed: {url} ({e})", url=url) from e

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
