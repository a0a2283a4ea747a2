"""Text helpers shared by every extraction strategy."""

from __future__ import annotations

import math
import re
from html import unescape
from typing import Any, Iterable

from selectolax.lexbor import LexborHTMLParser, LexborNode

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")
_NUMBER_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*([kKmM])?")
_ATTR_RE = re.compile(r"([a-zA-Z_:][\w:.-]*)\s*=\s*(?:\"([^\"]*)\"|'([^']*)')")

BOILERPLATE_RE = re.compile(
    r"^(?:home|menu|search|login|log ?in|sign ?in|sign ?up|register|logout"
    r"|submit(?: an?)?(?: ai)? tool|newsletter|subscribe|advertise|sponsor(?:ed)?"
    r"|load more|show more|view all|see all|read more|next|previous|prev"
    r"|privacy policy|terms(?: of (?:service|use))?|cookie(?:s| policy| settings)?"
    r"|contact(?: us)?|about(?: us)?|faq|blog|pricing)$",
    re.IGNORECASE,
)

_SCALES = {"k": 1_000, "m": 1_000_000}


def clean_text(value: Any) -> str:
    """Strip tags, unescape entities and collapse whitespace."""

    if value is None:
        return ""
    text = unescape(_TAG_RE.sub(" ", str(value)))
    return _SPACE_RE.sub(" ", text).strip()


def is_boilerplate(title: str) -> bool:
    return bool(BOILERPLATE_RE.match(title.strip().rstrip(":»›>").strip()))


def parse_score(value: Any) -> int:
    """Parse counts such as ``"1,234"``, ``"12.5k"`` or ``"▲ 42 points"``; junk yields 0."""

    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        return max(0, int(value)) if math.isfinite(value) else 0
    match = _NUMBER_RE.search(str(value))
    if not match:
        return 0
    try:
        number = float(match.group(1).replace(",", ""))
    except ValueError:
        return 0
    scaled = number * _SCALES.get((match.group(2) or "").lower(), 1)
    if not math.isfinite(scaled):
        return 0
    return int(round(scaled))


def parse_attributes(tag: str) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for name, double_quoted, single_quoted in _ATTR_RE.findall(tag):
        attrs[name.lower()] = unescape(double_quoted or single_quoted)
    return attrs


def first_node(node: LexborNode, selectors: Iterable[str]) -> LexborNode | None:
    for selector in selectors:
        found = node.css_first(selector)
        if found is not None:
            return found
    return None


def first_text(node: LexborNode, selectors: Iterable[str]) -> str:
    for selector in selectors:
        found = node.css_first(selector)
        if found is None:
            continue
        text = clean_text(found.text(separator=" ", strip=True))
        if text:
            return text
    return ""


def all_texts(node: LexborNode, selectors: Iterable[str]) -> list[str]:
    values: list[str] = []
    for selector in selectors:
        for found in node.css(selector):
            text = clean_text(found.text(separator=" ", strip=True))
            if text and text not in values:
                values.append(text)
        if values:
            break
    return values


def match_cards(root: LexborHTMLParser | LexborNode, selectors: Iterable[str]) -> list[LexborNode]:
    """Return nodes for the first selector that matches anything."""

    for selector in selectors:
        nodes = root.css(selector)
        if nodes:
            return nodes
    return []


__all__ = [
    "BOILERPLATE_RE",
    "all_texts",
    "clean_text",
    "first_node",
    "first_text",
    "is_boilerplate",
    "match_cards",
    "parse_attributes",
    "parse_score",
]
