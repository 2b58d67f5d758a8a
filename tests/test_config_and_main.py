"""設定読み込みとCLIのテスト。"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import main
from bmstable.config import HttpConfig, Settings, load_settings
from bmstable.scraper import DEFAULT_USER_AGENT

HEADER_URL = "https://example.test/header.json"
DATA_URL = "https://example.test/score.json"


@pytest.mark.light
def test_load_settings_reads_values(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        """
http:
  timeout: 5
  user_agent: "ua-test"
  verify_tls: false
max_workers: 4
log_level: debug
table_urls:
  - "https://stellabms.xyz/sl/table.html"
table_list_url: "https://example.test/list.json"
""",
        encoding="utf-8",
    )
    settings = load_settings(str(path))
    assert settings.http == HttpConfig(timeout=5.0, user_agent="ua-test", verify_tls=False)
    assert settings.max_workers == 4
    assert settings.log_level == "DEBUG"
    assert settings.table_urls == ("https://stellabms.xyz/sl/table.html",)
    assert settings.table_list_url == "https://example.test/list.json"


@pytest.mark.light
def test_load_settings_defaults_for_empty_file(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text("", encoding="utf-8")
    settings = load_settings(str(path))
    assert settings == Settings()
    assert settings.http.user_agent == DEFAULT_USER_AGENT


class _FakeFetcher:
    pages = {
        HEADER_URL: json.dumps({"name": "X", "symbol": "x", "data_url": "score.json"}),
        DATA_URL: json.dumps([{"level": 1, "md5": "a"}]),
    }

    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return None

    def __call__(self, url):
        if url not in self.pages:
            raise ConnectionError(url)
        return self.pages[url]


@pytest.mark.light
def test_main_prints_summary(monkeypatch, capsys, tmp_path: Path):
    monkeypatch.setattr(main, "Fetcher", _FakeFetcher)
    code = main.main([HEADER_URL, "--settings", str(tmp_path / "missing.yaml")])
    out = capsys.readouterr().out
    assert code == 0
    assert "X [x] charts=1" in out


@pytest.mark.light
def test_main_json_output(monkeypatch, capsys, tmp_path: Path):
    monkeypatch.setattr(main, "Fetcher", _FakeFetcher)
    code = main.main([HEADER_URL, "--json", "--settings", str(tmp_path / "missing.yaml")])
    out = json.loads(capsys.readouterr().out)
    assert code == 0
    assert out["header"]["name"] == "X"
    assert out["data"] == [{"level": "1", "md5": "a"}]


@pytest.mark.light
def test_main_reports_failure(monkeypatch, capsys, tmp_path: Path):
    monkeypatch.setattr(main, "Fetcher", _FakeFetcher)
    code = main.main(["https://nowhere.test/table.html", "--settings", str(tmp_path / "missing.yaml")])
    assert code == 1
    assert "nowhere.test" in capsys.readouterr().err
