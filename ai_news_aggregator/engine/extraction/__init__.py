"""Ordered extraction strategies per source kind."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from ...config import SourceKind
from . import news, tools

ExtractionStrategy = Callable[[str], "list[dict[str, Any]]"]

STRATEGIES: Mapping[SourceKind, tuple[ExtractionStrategy, ...]] = {
    SourceKind.TOOLS: tools.STRATEGIES,
    SourceKind.NEWS: news.STRATEGIES,
}

__all__ = ["ExtractionStrategy", "STRATEGIES", "news", "tools"]
