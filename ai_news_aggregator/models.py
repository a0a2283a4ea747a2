"""Immutable records produced by the extractor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class ToolRecord:
    """An AI tool listing entry."""

    id: int
    source: str
    name: str
    description: str
    link: str | None = None
    category: str | None = None

    @property
    def title(self) -> str:
        return self.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "link": self.link,
            "category": self.category,
            "source": self.source,
        }


@dataclass(frozen=True, slots=True)
class NewsRecord:
    """A news headline with its engagement score and relative age."""

    id: int
    source: str
    title: str
    description: str
    score: int = 0
    time_ago: str | None = None
    categories: tuple[str, ...] = ()
    link: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "score": self.score,
            "time_ago": self.time_ago,
            "categories": list(self.categories),
            "link": self.link,
            "source": self.source,
        }


SourceRecord = Union[ToolRecord, NewsRecord]

__all__ = ["NewsRecord", "SourceRecord", "ToolRecord"]
