"""Apply ordered extraction strategies and normalise their output into records."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping
from urllib.parse import urljoin

import structlog

from ..config import SourceConfig, SourceKind
from ..models import NewsRecord, SourceRecord, ToolRecord
from .extraction import STRATEGIES, ExtractionStrategy
from .extraction.common import clean_text, is_boilerplate, parse_score

MAX_RECORDS = 50


class Extractor:
    """Turn raw HTML into records; the first strategy yielding a valid record wins.

    Strategies never merge: when a page mixes layouts only the first matching
    layout is read. Extraction never raises, an unusable page gives ``[]``.
    """

    def __init__(
        self,
        strategies: Mapping[SourceKind, Iterable[ExtractionStrategy]] | None = None,
        max_records: int = MAX_RECORDS,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        source = STRATEGIES if strategies is None else strategies
        self.strategies: dict[SourceKind, tuple[ExtractionStrategy, ...]] = {
            kind: tuple(funcs) for kind, funcs in source.items()
        }
        self.max_records = max_records
        self.logger = logger or structlog.get_logger("ai_news_aggregator.extractor")

    def extract(
        self,
        html: str | None,
        source_kind: SourceKind,
        *,
        source: SourceConfig | None = None,
    ) -> list[SourceRecord]:
        if not html or not html.strip():
            return []
        try:
            source_kind = SourceKind(source_kind)
        except ValueError:
            self.logger.warning("extraction_unknown_kind", kind=str(source_kind))
            return []
        label = source.name if source else source_kind.value
        base_url = source.target_url if source else None
        limit = min(self.max_records, source.max_records) if source else self.max_records
        normalise = _NORMALISERS[source_kind]

        for strategy in self.strategies.get(source_kind, ()):
            try:
                raw_items = strategy(html)
            except Exception as exc:  # noqa: BLE001
                self.logger.warning(
                    "extraction_strategy_error",
                    source=label,
                    strategy=getattr(strategy, "__name__", repr(strategy)),
                    error=str(exc),
                )
                continue
            normalised = (self._normalise(normalise, raw, base_url, label) for raw in raw_items)
            valid = [item for item in normalised if item]
            if not valid:
                continue
            self.logger.debug(
                "extraction_strategy_matched",
                source=label,
                strategy=getattr(strategy, "__name__", repr(strategy)),
                found=len(valid),
            )
            return [
                _build_record(source_kind, index, label, item)
                for index, item in enumerate(valid[:limit], start=1)
            ]
        return []

    def _normalise(
        self,
        normalise: Callable[[Mapping[str, Any], str | None], dict[str, Any] | None],
        raw: Mapping[str, Any],
        base_url: str | None,
        label: str,
    ) -> dict[str, Any] | None:
        try:
            return normalise(raw, base_url)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("extraction_item_dropped", source=label, error=str(exc))
            return None


def _resolve_link(link: Any, base_url: str | None) -> str | None:
    if not link:
        return None
    href = str(link).strip()
    if not href or href.startswith(("javascript:", "#", "mailto:")):
        return None
    if not base_url:
        return href
    try:
        return urljoin(base_url, href)
    except ValueError:
        return None


def _normalise_tool(raw: Mapping[str, Any], base_url: str | None) -> dict[str, Any] | None:
    name = clean_text(raw.get("name"))
    description = clean_text(raw.get("description"))
    if not name or not description or is_boilerplate(name):
        return None
    category = clean_text(raw.get("category")) or None
    return {
        "name": name,
        "description": description,
        "link": _resolve_link(raw.get("link"), base_url),
        "category": category,
    }


def _normalise_news(raw: Mapping[str, Any], base_url: str | None) -> dict[str, Any] | None:
    title = clean_text(raw.get("title"))
    description = clean_text(raw.get("description"))
    if not title or not description or is_boilerplate(title):
        return None
    categories: list[str] = []
    for value in raw.get("categories") or ():
        text = clean_text(value)
        if text and text not in categories:
            categories.append(text)
    return {
        "title": title,
        "description": description,
        "score": parse_score(raw.get("score")),
        "time_ago": clean_text(raw.get("time_ago")) or None,
        "categories": tuple(categories),
        "link": _resolve_link(raw.get("link"), base_url),
    }


_NORMALISERS: dict[SourceKind, Callable[[Mapping[str, Any], str | None], dict[str, Any] | None]] = {
    SourceKind.TOOLS: _normalise_tool,
    SourceKind.NEWS: _normalise_news,
}


def _build_record(kind: SourceKind, record_id: int, source: str, item: dict[str, Any]) -> SourceRecord:
    if kind is SourceKind.TOOLS:
        return ToolRecord(id=record_id, source=source, **item)
    return NewsRecord(id=record_id, source=source, **item)


__all__ = ["Extractor", "MAX_RECORDS"]
