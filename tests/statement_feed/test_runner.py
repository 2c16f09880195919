"""Tests for the static site build runner."""

import json
import logging

import pytest

from src.statement_feed.config import SiteConfig
from src.statement_feed.logging_config import LOGGER_NAMESPACE
from src.statement_feed.runner import (
    BuildSummary,
    StatementSiteBuilder,
    detail_filename,
    main,
)
from src.statement_feed.store import StatementStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("STATEMENTS_CONFIG", *SiteConfig.ENV_OVERRIDES):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def restore_logger():
    logger = logging.getLogger(LOGGER_NAMESPACE)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


@pytest.fixture
def records():
    return [
        {
            "id": "1a2b3c4d-0001",
            "title": "Older statement",
            "date": "2024-01-01",
            "summary": "Older summary",
            "body": "Older body with [partner](https://partner.org)",
            "slug": "older-statement",
        },
        {
            "id": "1a2b3c4d-0002",
            "title": "Newer statement",
            "date": "2024-02-01",
            "summary": "Newer summary",
            "body": '<p>See <a href="https://partner.org/report">the report</a></p><script>alert(1)</script>',
            "slug": "newer-statement",
        },
        {"title": "Draft", "date": "2024-03-01", "published": False},
        {"summary": "No title or date"},
    ]


@pytest.fixture
def data_path(tmp_path, records):
    path = tmp_path / "data" / "statements.json"
    StatementStore(path).save(records, last_updated="2024-02-02T00:00:00.000Z")
    return path


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "statements.yaml"
    path.write_text(
        "site:\n  site_url: https://poli.example.org/\ndata:\n  sanitize_html_bodies: true\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def builder(config_path, data_path):
    return StatementSiteBuilder(config=SiteConfig(config_path), store=StatementStore(data_path))


def test_build_writes_list_detail_and_catalog(builder, tmp_path):
    output = tmp_path / "site"
    summary = builder.build(output)

    index = (output / "index.html").read_text(encoding="utf-8")
    assert index.count('<article class="card statement-card"') == 2
    assert index.index("Newer statement") < index.index("Older statement")
    assert "Draft" not in index

    assert (output / "statements" / "older-statement.html").exists()
    assert (output / "statements" / "newer-statement.html").exists()
    assert len(list((output / "statements").iterdir())) == 2

    catalog = json.loads((output / "catalog.json").read_text(encoding="utf-8"))
    assert [s["slug"] for s in catalog["statements"]] == ["newer-statement", "older-statement"]
    assert catalog["statements"][0]["url"] == "./poli-statements.html?statement=newer-statement"
    assert catalog["_metadata"]["lastUpdated"] == "2024-02-02T00:00:00.000Z"

    assert summary.total_records == 4
    assert summary.statements_rendered == 2
    assert summary.records_failed == 1
    assert summary.records_unpublished == 1
    assert summary.sync_status == "success"
    assert len(summary.failed_records) == 1
    assert summary.failed_records[0].startswith("Statement 4 failed to parse: Statement title is required.")
    assert summary.exit_code() == 2


def test_build_sanitizes_html_bodies_when_configured(builder, tmp_path):
    builder.build(tmp_path / "site")
    detail = (tmp_path / "site" / "statements" / "newer-statement.html").read_text(encoding="utf-8")
    assert "<script>" not in detail
    assert "the report" in detail


def test_build_marks_external_links_in_html_bodies(builder, tmp_path):
    builder.build(tmp_path / "site")
    detail = (tmp_path / "site" / "statements" / "newer-statement.html").read_text(encoding="utf-8")
    assert 'aria-label="the report, 새 창에서 열림"' in detail
    assert 'target="_blank"' in detail


def test_build_keeps_back_link_internal(builder, tmp_path):
    builder.build(tmp_path / "site")
    detail = (tmp_path / "site" / "statements" / "older-statement.html").read_text(encoding="utf-8")
    assert 'href="./poli-statements.html"' in detail
    assert "목록으로 돌아가기, 새 창에서 열림" not in detail


def test_build_invalid_json_renders_error_notice(tmp_path):
    data_path = tmp_path / "statements.json"
    data_path.write_text("{broken", encoding="utf-8")
    builder = StatementSiteBuilder(config=SiteConfig(tmp_path / "none.yaml"), store=StatementStore(data_path))

    summary = builder.build(tmp_path / "site")

    assert summary.exit_code() == 1
    assert summary.sync_status == "error"
    assert summary.errors[0].startswith("Failed to load statements:")
    assert "성명 목록을 불러오는 중 오류가 발생했습니다." in (tmp_path / "site" / "index.html").read_text(encoding="utf-8")


def test_build_non_utf8_payload_renders_error_notice(tmp_path):
    data_path = tmp_path / "statements.json"
    data_path.write_bytes(b'{"statements": [{"title": "\xff\xfe"}]}')
    builder = StatementSiteBuilder(config=SiteConfig(tmp_path / "none.yaml"), store=StatementStore(data_path))

    summary = builder.build(tmp_path / "site")

    assert summary.exit_code() == 1
    assert summary.sync_status == "error"
    assert "Invalid UTF-8" in summary.errors[0]
    assert "성명 목록을 불러오는 중 오류가 발생했습니다." in (tmp_path / "site" / "index.html").read_text(encoding="utf-8")


def test_build_missing_file_renders_empty_notice(tmp_path):
    builder = StatementSiteBuilder(
        config=SiteConfig(tmp_path / "none.yaml"),
        store=StatementStore(tmp_path / "missing.json"),
    )
    summary = builder.build(tmp_path / "site")

    assert summary.exit_code() == 0
    assert summary.total_records == 0
    assert "아직 등록된 성명이 없습니다." in (tmp_path / "site" / "index.html").read_text(encoding="utf-8")
    catalog = json.loads((tmp_path / "site" / "catalog.json").read_text(encoding="utf-8"))
    assert catalog["statements"] == []
    assert catalog["_metadata"]["statementsCount"] == 0


def test_build_failed_sync_with_no_statements_renders_error_notice(tmp_path):
    store = StatementStore(tmp_path / "statements.json")
    store.save([], sync_status="error", error_message="API down", last_updated="2024-01-15T01:00:00.000Z")
    builder = StatementSiteBuilder(config=SiteConfig(tmp_path / "none.yaml"), store=store)

    summary = builder.build(tmp_path / "site")

    index = (tmp_path / "site" / "index.html").read_text(encoding="utf-8")
    assert "API down" in index
    assert "마지막 업데이트: 2024년 1월 15일" in index
    assert summary.sync_status == "error"


def test_detail_filename_quotes_slug():
    assert detail_filename("plain-slug") == "plain-slug.html"
    assert detail_filename("a/b c") == "a%2Fb%20c.html"


def test_build_summary_exit_codes():
    assert BuildSummary(started_at="t").exit_code() == 0
    assert BuildSummary(started_at="t", failed_records=["x"]).exit_code() == 2
    assert BuildSummary(started_at="t", errors=["x"], failed_records=["y"]).exit_code() == 1
    assert BuildSummary(started_at="t", errors=["x"]).to_dict()["exit_code"] == 1


def test_main_json_output(tmp_path, config_path, data_path, capsys, restore_logger):
    output = tmp_path / "out"
    exit_code = main(
        [
            "--config",
            str(config_path),
            "--data",
            str(data_path),
            "--output",
            str(output),
            "--log-file",
            str(tmp_path / "logs" / "build.log"),
            "--json",
        ]
    )

    assert exit_code == 2
    summary = json.loads(capsys.readouterr().out)
    assert summary["statements_rendered"] == 2
    assert summary["exit_code"] == 2
    assert (output / "index.html").exists()
    assert (tmp_path / "logs" / "build.log").exists()


def test_main_uses_configured_data_path(tmp_path, data_path, restore_logger):
    config_path = tmp_path / "site.yaml"
    config_path.write_text(f"data:\n  path: {data_path}\n", encoding="utf-8")

    exit_code = main(
        [
            "--config",
            str(config_path),
            "--output",
            str(tmp_path / "out"),
            "--log-file",
            str(tmp_path / "build.log"),
            "--verbose",
        ]
    )

    assert exit_code == 2
    assert (tmp_path / "out" / "statements" / "newer-statement.html").exists()
