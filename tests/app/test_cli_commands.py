from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from ai_news_aggregator import app as app_module
from ai_news_aggregator.aggregator import Aggregator
from ai_news_aggregator.app import AppState, app
from ai_news_aggregator.errors import FetchError
from ai_news_aggregator.logging_conf import application_log_path, configure_logging

LATEST = "https://tools.test/latest/"
TRENDING = "https://tools.test/trending/"
NEWS = "https://news.test/ai-news"

runner = CliRunner()


@pytest.fixture
def install_state(monkeypatch: pytest.MonkeyPatch, sample_global_config, stub_fetcher_factory, temp_config_repository):
    configure_logging()

    def install(responses):
        fetcher = stub_fetcher_factory(responses)
        state = AppState(
            repository=temp_config_repository,
            aggregator=Aggregator(sample_global_config, fetcher=fetcher),
        )

        def build_state(verbose: bool) -> AppState:
            return state

        monkeypatch.setattr(app_module, "build_state", build_state)
        return fetcher

    return install


def test_cli_list_sources(install_state) -> None:
    install_state({})
    result = runner.invoke(app, ["sources"])
    assert result.exit_code == 0
    for name in ("latest", "trending", "toolify", "daily-ai-news"):
        assert name in result.stdout


def test_cli_fetch_json(install_state, news_page) -> None:
    fetcher = install_state({NEWS: news_page})
    result = runner.invoke(app, ["fetch", "daily-ai-news", "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["success"] is True
    assert payload["count"] == 2
    assert payload["data"][0]["title"] == "Model release"
    assert fetcher.closed


def test_cli_fetch_table(install_state, tools_page) -> None:
    install_state({LATEST: tools_page})
    result = runner.invoke(app, ["fetch", "latest"])
    assert result.exit_code == 0
    assert "Alpha Writer" in result.stdout


def test_cli_fetch_unknown_source(install_state) -> None:
    install_state({})
    result = runner.invoke(app, ["fetch", "podcasts"])
    assert result.exit_code == 2


def test_cli_fetch_failure_exits_non_zero(install_state) -> None:
    install_state({LATEST: FetchError(LATEST, "HTTP 503", 3)})
    result = runner.invoke(app, ["fetch", "latest"])
    assert result.exit_code == 1
    assert "HTTP 503" in result.stdout


def test_cli_all_summary(install_state, tools_page, news_page) -> None:
    install_state({LATEST: tools_page, TRENDING: FetchError(TRENDING, "timeout", 3), NEWS: news_page})
    result = runner.invoke(app, ["all", "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["summary"]["total_items"] == 5
    assert payload["summary"]["failed_sources"] == ["trending"]

    table = runner.invoke(app, ["all"])
    assert table.exit_code == 0
    assert "Total" in table.stdout


def test_cli_log_show(install_state) -> None:
    install_state({})
    path = application_log_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("first\nsecond\nthird\n", encoding="utf-8")
    result = runner.invoke(app, ["log", "show", "--tail", "2"])
    assert result.exit_code == 0
    assert "second" in result.stdout
    assert "first" not in result.stdout


def test_cli_serve_does_not_build_state(monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(verbose: bool) -> AppState:
        raise AssertionError("serve must not build an aggregator")

    calls: list[tuple[str, dict]] = []
    monkeypatch.setattr(app_module, "build_state", refuse)
    monkeypatch.setattr("uvicorn.run", lambda target, **kwargs: calls.append((target, kwargs)))

    result = runner.invoke(app, ["serve", "--port", "9000"])
    assert result.exit_code == 0
    assert calls[0][0] == "ai_news_aggregator.api:create_app"
    assert calls[0][1]["factory"] is True
    assert calls[0][1]["port"] == 9000
