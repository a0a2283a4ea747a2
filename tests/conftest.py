"""Shared fixtures: configs, fixture HTML builders and a stub fetcher."""

from __future__ import annotations

from pathlib import Path
from threading import Lock
from typing import Any, Callable, Iterable, Mapping

import pytest

from ai_news_aggregator.config import (
    ConfigLocator,
    ConfigRepository,
    FetchSettings,
    GlobalConfig,
    SourceConfig,
    SourceKind,
)
from ai_news_aggregator.engine import FetchResponse


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("AI_NEWS_AGGREGATOR_HOME", str(tmp_path))
    return tmp_path


def tool_card(name: str, description: str | None, *, slug: str | None = None, category: str = "Writing") -> str:
    slug = slug or name.lower().replace(" ", "-")
    desc_html = f'<p class="tool-description">{description}</p>' if description is not None else ""
    return (
        '<div class="tool-card">'
        f'<h3 class="tool-name">{name}</h3>'
        f"{desc_html}"
        f'<a class="tool-link" href="/ai/{slug}">Visit</a>'
        f'<span class="category">{category}</span>'
        "</div>"
    )


def news_item(
    title: str,
    description: str | None,
    *,
    score: str = "42 points",
    time_ago: str = "2 hours ago",
    tags: Iterable[str] = ("LLM",),
    href: str = "/news/1",
) -> str:
    desc_html = f'<p class="news-description">{description}</p>' if description is not None else ""
    tags_html = "".join(f"<a>{tag}</a>" for tag in tags)
    return (
        '<div class="news-item">'
        f'<h2 class="news-title"><a href="{href}">{title}</a></h2>'
        f"{desc_html}"
        f'<span class="score">{score}</span>'
        f'<span class="time-ago">{time_ago}</span>'
        f'<div class="tags">{tags_html}</div>'
        "</div>"
    )


def page(*blocks: str) -> str:
    return "<html><head><title>Listing</title></head><body><main>" + "".join(blocks) + "</main></body></html>"


@pytest.fixture
def tools_page() -> str:
    return page(
        '<nav><a href="/">Home</a><a href="/login">Login</a></nav>',
        tool_card("Alpha Writer", "Drafts long-form blog posts."),
        tool_card("Beta Vision", "Labels images automatically.", category="Image"),
        tool_card("Broken Tool", None),
        tool_card("Gamma Voice", "Clones voices for narration.", category="Audio"),
    )


@pytest.fixture
def news_page() -> str:
    return page(
        news_item("Model release", "A new open model ships today.", score="1.2k points", tags=("LLM", "Release")),
        news_item("Robotics funding", "Startup raises a big round.", score="n/a", time_ago="1 day ago", href="/news/2"),
    )


def make_fetch_settings(**overrides: Any) -> FetchSettings:
    base: dict[str, Any] = {
        "max_attempts": 3,
        "base_delay": 0.01,
        "jitter_ratio": 0.25,
        "max_delay": 1.0,
        "request_timeout": 2.0,
        "user_agents": ["UA-One/1.0", "UA-Two/2.0", "UA-Three/3.0"],
        "referers": ["https://ref-a.test/", "https://ref-b.test/"],
    }
    base.update(overrides)
    return FetchSettings(**base)


@pytest.fixture
def fetch_settings() -> Callable[..., FetchSettings]:
    return make_fetch_settings


@pytest.fixture
def sample_global_config() -> GlobalConfig:
    return GlobalConfig(
        cache_ttl_seconds=300,
        thread_pool_workers=4,
        fetch=make_fetch_settings(),
        sources=[
            SourceConfig(
                name="latest",
                kind=SourceKind.TOOLS,
                target_url="https://tools.test/latest/",
                label="Tools Directory",
                list_kind="latest",
            ),
            SourceConfig(
                name="trending",
                kind=SourceKind.TOOLS,
                target_url="https://tools.test/trending/",
                label="Tools Directory",
                list_kind="trending",
            ),
            SourceConfig(
                name="toolify",
                kind=SourceKind.NEWS,
                target_url="https://news.test/ai-news",
                label="Daily AI News",
                aliases=["daily-ai-news"],
            ),
        ],
    )


class StubFetcher:
    """Fetcher stand-in mapping URLs to HTML, exceptions or callables."""

    def __init__(self, responses: Mapping[str, Any]) -> None:
        self.responses = dict(responses)
        self.calls: list[str] = []
        self.closed = False
        self._lock = Lock()

    def fetch(self, url: str, *, seed: int | None = None) -> FetchResponse:
        with self._lock:
            self.calls.append(url)
        outcome = self.responses[url]
        if callable(outcome) and not isinstance(outcome, str):
            outcome = outcome()
        if isinstance(outcome, BaseException):
            raise outcome
        return FetchResponse(url=url, status_code=200, text=outcome, headers={}, attempts=1)

    def close(self) -> None:
        self.closed = True

    def count(self, url: str) -> int:
        with self._lock:
            return self.calls.count(url)


@pytest.fixture
def stub_fetcher_factory() -> Callable[[Mapping[str, Any]], StubFetcher]:
    return StubFetcher


@pytest.fixture
def temp_config_repository(tmp_path: Path) -> ConfigRepository:
    return ConfigRepository(ConfigLocator(project_root=tmp_path))
