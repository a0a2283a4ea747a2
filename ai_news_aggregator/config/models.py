"""Pydantic models used across the aggregator configuration flow."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36 Edg/124.0.0.0",
)

DEFAULT_REFERERS: tuple[str, ...] = (
    "https://www.google.com/",
    "https://www.bing.com/",
    "https://duckduckgo.com/",
    "https://news.ycombinator.com/",
    "https://www.reddit.com/r/artificial/",
    "https://twitter.com/",
)


RESERVED_SOURCE_NAMES = frozenset({"all", "status", "docs", "openapi.json"})


class SourceKind(str, Enum):
    """Record shapes the extractor knows how to produce."""

    TOOLS = "tools"
    NEWS = "news"


class FetchSettings(BaseModel):
    """Retry, backoff and identity settings for the fetcher."""

    max_attempts: int = 3
    base_delay: float = 1.0
    jitter_ratio: float = 0.25
    max_delay: float = 30.0
    request_timeout: float = 10.0
    user_agents: list[str] = Field(default_factory=lambda: list(DEFAULT_USER_AGENTS))
    referers: list[str] = Field(default_factory=lambda: list(DEFAULT_REFERERS))

    @field_validator("user_agents", "referers", mode="before")
    @classmethod
    def _strip_pool(cls, value: Any) -> list[str]:
        if value in (None, ""):
            return []
        if isinstance(value, str):
            value = [value]
        return [str(item).strip() for item in value if str(item).strip()]

    @model_validator(mode="after")
    def _validate_policy(self) -> "FetchSettings":
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("Delays must be non-negative")
        # Larger jitter would let a later wait undercut an earlier one.
        if not 0 <= self.jitter_ratio <= 1 / 3:
            raise ValueError("jitter_ratio must be within [0, 1/3]")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        if not self.user_agents:
            raise ValueError("user_agents cannot be empty")
        if not self.referers:
            raise ValueError("referers cannot be empty")
        return self


class SourceConfig(BaseModel):
    """Definition of one upstream listing page."""

    name: str
    kind: SourceKind
    target_url: str
    label: str = ""
    list_kind: str | None = None
    aliases: list[str] = Field(default_factory=list)
    max_records: int = 50
    enabled: bool = True

    @model_validator(mode="after")
    def _validate_source(self) -> "SourceConfig":
        if not self.name.strip():
            raise ValueError("name cannot be empty")
        if not self.target_url.startswith(("http://", "https://")):
            raise ValueError("target_url must be an http(s) URL")
        if self.max_records < 1:
            raise ValueError("max_records must be >= 1")
        if not self.label:
            self.label = self.name
        return self


def default_sources() -> list[SourceConfig]:
    return [
        SourceConfig(
            name="latest",
            kind=SourceKind.TOOLS,
            target_url="https://theresanaiforthat.com/just-released/",
            label="There's An AI For That",
            list_kind="latest",
        ),
        SourceConfig(
            name="trending",
            kind=SourceKind.TOOLS,
            target_url="https://theresanaiforthat.com/trending/",
            label="There's An AI For That",
            list_kind="trending",
        ),
        SourceConfig(
            name="toolify",
            kind=SourceKind.NEWS,
            target_url="https://www.toolify.ai/ai-news",
            label="Toolify Daily AI News",
            aliases=["daily-ai-news"],
        ),
    ]


class GlobalConfig(BaseModel):
    """Global controls shared across sources."""

    api_name: str = "AI News Aggregator API"
    log_level: str = "INFO"
    cache_ttl_seconds: float = 300.0
    thread_pool_workers: int = 4
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    sources: list[SourceConfig] = Field(default_factory=default_sources)

    @field_validator("log_level", mode="before")
    @classmethod
    def _coerce_level(cls, value: Any) -> str:
        return str(value or "INFO").upper()

    @model_validator(mode="after")
    def _validate_global(self) -> "GlobalConfig":
        if self.cache_ttl_seconds < 0:
            raise ValueError("cache_ttl_seconds must be >= 0")
        if self.thread_pool_workers < 1:
            raise ValueError("thread_pool_workers must be >= 1")
        names = [name for source in self.sources for name in (source.name, *source.aliases)]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate source names or aliases: {duplicates}")
        reserved = sorted(set(names) & RESERVED_SOURCE_NAMES)
        if reserved:
            raise ValueError(f"Source names clash with built-in endpoints: {reserved}")
        return self

    def enabled_sources(self) -> list[SourceConfig]:
        return [source for source in self.sources if source.enabled]

    def source(self, name: str) -> SourceConfig | None:
        return next(
            (source for source in self.sources if name == source.name or name in source.aliases),
            None,
        )


__all__ = [
    "DEFAULT_REFERERS",
    "DEFAULT_USER_AGENTS",
    "FetchSettings",
    "GlobalConfig",
    "SourceConfig",
    "SourceKind",
    "default_sources",
]
