"""Aggregator wiring fetch and extract per source, with concurrent fan-out."""

from __future__ import annotations

from concurrent.futures import ALL_COMPLETED, Future, wait
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

import structlog

from .config import GlobalConfig, SourceConfig
from .engine import Extractor, Fetcher, ThreadPoolManager
from .errors import ExtractionEmpty, FetchError, PartialSourceFailure, UnknownSourceError
from .infra import IdentityPool
from .logging_conf import source_logger
from .models import SourceRecord


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class PipelineState(str, Enum):
    """Lifecycle of one source pipeline within a single aggregation."""

    PENDING = "pending"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    FETCH_FAILED = "fetch_failed"
    DONE = "done"


@dataclass(slots=True)
class SourceResult:
    """Outcome of fetch + extract for one source."""

    source: str
    success: bool = False
    records: list[SourceRecord] = field(default_factory=list)
    error: str | None = None
    warning: str | None = None
    attempts: int = 0
    url: str | None = None
    label: str = ""
    state: PipelineState = PipelineState.PENDING
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.PENDING])

    @property
    def count(self) -> int:
        return len(self.records)

    def advance(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "source": self.label or self.source,
            "count": self.count,
            "data": [record.to_dict() for record in self.records],
            "error": self.error,
        }
        if self.warning:
            payload["warning"] = self.warning
        return payload


@dataclass(slots=True)
class AggregateResult:
    """Per-source breakdown of one aggregation, in requested order."""

    sources: dict[str, SourceResult]
    timestamp: str = field(default_factory=utc_now_iso)

    @property
    def success(self) -> bool:
        return any(result.success for result in self.sources.values())

    @property
    def succeeded_sources(self) -> list[str]:
        return [name for name, result in self.sources.items() if result.success]

    @property
    def failed_sources(self) -> list[str]:
        return [name for name, result in self.sources.items() if not result.success]

    @property
    def total_items(self) -> int:
        return sum(result.count for result in self.sources.values() if result.success)

    @property
    def partial_failure(self) -> PartialSourceFailure | None:
        if self.failed_sources and self.succeeded_sources:
            return PartialSourceFailure(self.failed_sources, self.succeeded_sources)
        return None

    def to_dict(self) -> dict[str, Any]:
        summary: dict[str, Any] = {
            "total_items": self.total_items,
            "total_sources": len(self.sources),
            "succeeded": len(self.succeeded_sources),
            "failed": len(self.failed_sources),
            "failed_sources": self.failed_sources,
        }
        partial = self.partial_failure
        if partial is not None:
            summary["warning"] = str(partial)
        return {
            "success": self.success,
            "sources": {name: result.to_dict() for name, result in self.sources.items()},
            "summary": summary,
            "timestamp": self.timestamp,
        }


class Aggregator:
    """Central coordinator running source pipelines and merging their results."""

    def __init__(
        self,
        config: GlobalConfig,
        fetcher: Fetcher | None = None,
        extractor: Extractor | None = None,
        thread_pool: ThreadPoolManager | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher or Fetcher(
            config.fetch,
            IdentityPool(config.fetch.user_agents, config.fetch.referers),
        )
        self.extractor = extractor or Extractor()
        self.thread_pool = thread_pool or ThreadPoolManager(config.thread_pool_workers)
        self.logger = logger or structlog.get_logger("ai_news_aggregator").bind(component="aggregator")

    def close(self) -> None:
        self.thread_pool.shutdown()
        self.fetcher.close()

    # ------------------------------------------------------------------
    def source_names(self) -> list[str]:
        return [source.name for source in self.config.enabled_sources()]

    def resolve(self, name: str) -> SourceConfig:
        source = self.config.source(name)
        if source is None or not source.enabled:
            raise UnknownSourceError(name)
        return source

    def run_source(self, name: str) -> SourceResult:
        source = self.resolve(name)
        return self._run_pipeline(source)

    def aggregate(self, source_names: Iterable[str] | None = None) -> AggregateResult:
        names = source_names if source_names is not None else self.source_names()
        resolved: dict[str, SourceConfig] = {}
        for name in names:
            source = self.resolve(name)
            resolved.setdefault(source.name, source)
        sources = list(resolved.values())
        results: dict[str, SourceResult] = {}
        if len(sources) <= 1:
            for source in sources:
                try:
                    results[source.name] = self._run_pipeline(source)
                except Exception as exc:  # noqa: BLE001
                    results[source.name] = self._crashed(source, exc)
        else:
            executor = self.thread_pool.get()
            futures: dict[str, Future[SourceResult]] = {
                source.name: executor.submit(self._run_pipeline, source) for source in sources
            }
            wait(futures.values(), return_when=ALL_COMPLETED)
            for source in sources:
                future = futures[source.name]
                exc = future.exception()
                results[source.name] = future.result() if exc is None else self._crashed(source, exc)

        aggregate = AggregateResult(sources=results)
        partial = aggregate.partial_failure
        if partial is not None:
            self.logger.warning(
                "aggregate_partial_failure",
                failed=partial.failed,
                succeeded=partial.succeeded,
            )
        self.logger.info(
            "aggregate_completed",
            success=aggregate.success,
            total_items=aggregate.total_items,
        )
        return aggregate

    # ------------------------------------------------------------------
    def _crashed(self, source: SourceConfig, exc: BaseException) -> SourceResult:
        self.logger.error("source_crashed", source=source.name, error=str(exc))
        crashed = SourceResult(source=source.name, label=source.label, url=source.target_url)
        crashed.error = f"Internal error: {exc}"
        crashed.advance(PipelineState.DONE)
        return crashed

    def _run_pipeline(self, source: SourceConfig) -> SourceResult:
        log = source_logger(source.name)
        result = SourceResult(source=source.name, label=source.label, url=source.target_url)
        log.info("source_started", url=source.target_url)

        result.advance(PipelineState.FETCHING)
        try:
            response = self.fetcher.fetch(source.target_url)
        except FetchError as exc:
            result.advance(PipelineState.FETCH_FAILED)
            result.error = exc.reason
            result.attempts = exc.attempts
            result.advance(PipelineState.DONE)
            log.error("source_fetch_failed", reason=exc.reason, attempts=exc.attempts)
            return result

        result.attempts = response.attempts
        result.advance(PipelineState.EXTRACTING)
        result.records = self.extractor.extract(response.text, source.kind, source=source)
        result.success = True
        if not result.records:
            result.warning = str(ExtractionEmpty(source.name))
            log.warning("source_extraction_empty", html_length=len(response.text))
        result.advance(PipelineState.DONE)
        log.info("source_completed", count=result.count, attempts=result.attempts)
        return result


__all__ = [
    "AggregateResult",
    "Aggregator",
    "PipelineState",
    "SourceResult",
    "utc_now_iso",
]
