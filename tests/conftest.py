from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bmstable.pipeline import TableResolver


class FakeFetch:
    """URL→本文の辞書で応答するテスト用の取得関数。値が例外なら送出する。"""

    def __init__(self, pages: Dict[str, object]):
        self.pages = pages
        self.requested: List[str] = []

    def __call__(self, url: str) -> str:
        self.requested.append(url)
        if url not in self.pages:
            raise ConnectionError(f"no route to {url}")
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page
        return page


@pytest.fixture
def make_resolver():
    def _make(pages: Dict[str, object], **kwargs) -> TableResolver:
        return TableResolver(fetch=FakeFetch(pages), **kwargs)

    return _make
