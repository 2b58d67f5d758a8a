"""
取得テキストの解釈処理。

HTTPで取得した文字列が「ヘッダJSONそのもの」なのか
「ヘッダJSONの位置を示すHTML」なのかを判定する責務を持つ。

想定仕様:
- まずJSONとしての解釈を試み、オブジェクトであればヘッダJSONとみなす
- JSONでなければHTMLとして扱い、<meta name="bmstable" content="..."> の content を取り出す
- Content-Type ヘッダによる判定は行わない
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Optional

from bs4 import BeautifulSoup

from bmstable.errors import MalformedDocumentError, UnresolvableReferenceError
from bmstable.models import HeaderJson, HeaderPointer, HeaderQueryContent

# 改行・タブ以外の制御文字。一部の配信元はJSONの前後にNULや改ページを付ける
_CTRL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def load_json_text(text: str) -> Any:
    """
    JSON文字列をパースする。

    先頭のBOMと制御文字を除去してからパースする。

    Args:
        text: JSON文字列。

    Returns:
        パース結果。

    Raises:
        MalformedDocumentError: JSONとして解釈できない、または入れ子が深すぎる場合。
    """
    cleaned = _CTRL_CHARS.sub("", text).lstrip("\ufeff").strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedDocumentError(f"invalid JSON: {e}") from e
    except RecursionError as e:
        raise MalformedDocumentError("invalid JSON: nesting too deep") from e


def extract_bmstable_url(html: str) -> Optional[str]:
    """
    HTMLから bmstable メタタグの content を取り出す。

    Args:
        html: HTML文字列。

    Returns:
        content の値（前後空白除去済み）。見つからない、または空の場合は None。
    """
    soup = BeautifulSoup(html, "html.parser")
    for meta in soup.find_all("meta"):
        name = meta.get("name")
        if name is None or name.strip().lower() != "bmstable":
            continue
        content = (meta.get("content") or "").strip()
        if content:
            return content
    return None


def classify_header_content(
    text: str,
    extract_meta_url: Callable[[str], Optional[str]] = extract_bmstable_url,
) -> HeaderQueryContent:
    """
    取得テキストをヘッダJSONかポインタ(URL)に分類する。

    Args:
        text: 取得したテキスト。
        extract_meta_url: HTMLからポインタURLを取り出す関数。

    Returns:
        HeaderJson または HeaderPointer。

    Raises:
        UnresolvableReferenceError: JSONオブジェクトでもなく、bmstable メタタグも無い場合。
    """
    try:
        value = load_json_text(text)
    except MalformedDocumentError:
        value = None

    if isinstance(value, dict):
        return HeaderJson(value)

    url = extract_meta_url(text)
    if not url:
        raise UnresolvableReferenceError(
            "document is neither header JSON nor HTML with <meta name=\"bmstable\">"
        )
    return HeaderPointer(url)
