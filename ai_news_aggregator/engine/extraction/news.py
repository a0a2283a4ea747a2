"""Strategies turning AI news pages into raw news dicts."""

from __future__ import annotations

import re
from typing import Any

from selectolax.lexbor import LexborHTMLParser

from .common import all_texts, clean_text, first_node, first_text, match_cards

ITEM_SELECTORS = ("div.news-item", "article.news", "div.news-card", "li.news-item", "article.news-item")
TITLE_SELECTORS = (".news-title", "h2", "h3", ".title", "h4")
DESCRIPTION_SELECTORS = (".news-description", ".description", ".summary", ".excerpt", "p")
SCORE_SELECTORS = (".score", ".points", ".votes", ".upvotes")
TIME_SELECTORS = (".time-ago", ".time", "time", ".date")
CATEGORY_SELECTORS = (".categories a", ".category", ".tag", ".tags a", ".tags span")
LINK_SELECTORS = (".news-title a[href]", "h2 a[href]", "h3 a[href]", "a[href]")

_NEWS_BLOCK_RE = re.compile(
    r"<(?P<tag>div|li|article)\b[^>]*class=[\"'][^\"']*\bnews(?:[-_][\w-]*)?(?=[\s\"'])[^\"']*[\"'][^>]*>(?P<body>.*?)</(?P=tag)>",
    re.IGNORECASE | re.DOTALL,
)
_HEADING_RE = re.compile(r"<h([1-4])\b[^>]*>(?P<text>.*?)</h\1>", re.IGNORECASE | re.DOTALL)
_PARAGRAPH_RE = re.compile(r"<p\b[^>]*>(?P<text>.*?)</p>", re.IGNORECASE | re.DOTALL)
_HREF_RE = re.compile(r"<a\b[^>]*href=[\"'](?P<href>[^\"']+)[\"']", re.IGNORECASE)
_SCORE_RE = re.compile(
    r"class=[\"'][^\"']*\b(?:score|points|votes|upvotes)\b[^\"']*[\"'][^>]*>(?P<text>[^<]*)<",
    re.IGNORECASE,
)
_TIME_TAG_RE = re.compile(r"<time\b[^>]*>(?P<text>.*?)</time>", re.IGNORECASE | re.DOTALL)
_RELATIVE_TIME_RE = re.compile(
    r"\b(?P<text>(?:\d+|an?|one)\s+(?:second|minute|min|hour|hr|day|week|month|year)s?\s+ago|just now|yesterday)\b",
    re.IGNORECASE,
)
_CATEGORY_RE = re.compile(
    r"class=[\"'][^\"']*\b(?:category|tag)\b[^\"']*[\"'][^>]*>(?P<text>[^<]+)<",
    re.IGNORECASE,
)
_HEADLINE_RE = re.compile(
    r"<h(?P<level>[23])\b[^>]*>(?P<title>.*?)</h(?P=level)>\s*(?:<(?!p\b|h[1-6]\b)[^>]*>\s*)*<p\b[^>]*>(?P<description>.*?)</p>",
    re.IGNORECASE | re.DOTALL,
)


def _relative_time(body: str) -> str | None:
    tag = _TIME_TAG_RE.search(body)
    if tag:
        text = clean_text(tag.group("text"))
        if text:
            return text
    match = _RELATIVE_TIME_RE.search(clean_text(body))
    return match.group("text") if match else None


def news_items_markup(html: str) -> list[dict[str, Any]]:
    """Read known news item markup with CSS selectors."""

    tree = LexborHTMLParser(html)
    items: list[dict[str, Any]] = []
    for node in match_cards(tree, ITEM_SELECTORS):
        link_node = first_node(node, LINK_SELECTORS)
        items.append(
            {
                "title": first_text(node, TITLE_SELECTORS),
                "description": first_text(node, DESCRIPTION_SELECTORS),
                "score": first_text(node, SCORE_SELECTORS) or None,
                "time_ago": first_text(node, TIME_SELECTORS) or None,
                "categories": all_texts(node, CATEGORY_SELECTORS),
                "link": link_node.attributes.get("href") if link_node is not None else None,
            }
        )
    return items


def news_blocks_regex(html: str) -> list[dict[str, Any]]:
    """Looser pass over any element whose class mentions ``news``."""

    items: list[dict[str, Any]] = []
    for block in _NEWS_BLOCK_RE.finditer(html):
        body = block.group("body")
        heading = _HEADING_RE.search(body)
        paragraph = _PARAGRAPH_RE.search(body)
        score = _SCORE_RE.search(body)
        href = _HREF_RE.search(body)
        categories: list[str] = []
        for match in _CATEGORY_RE.finditer(body):
            text = clean_text(match.group("text"))
            if text and text not in categories:
                categories.append(text)
        items.append(
            {
                "title": clean_text(heading.group("text")) if heading else "",
                "description": clean_text(paragraph.group("text")) if paragraph else "",
                "score": score.group("text") if score else None,
                "time_ago": _relative_time(body),
                "categories": categories,
                "link": href.group("href") if href else None,
            }
        )
    return items


def news_headlines_regex(html: str) -> list[dict[str, Any]]:
    """Last resort: any h2/h3 headline directly followed by a paragraph."""

    items: list[dict[str, Any]] = []
    for match in _HEADLINE_RE.finditer(html):
        href = _HREF_RE.search(match.group("title"))
        items.append(
            {
                "title": clean_text(match.group("title")),
                "description": clean_text(match.group("description")),
                "score": None,
                "time_ago": None,
                "categories": [],
                "link": href.group("href") if href else None,
            }
        )
    return items


STRATEGIES = (news_items_markup, news_blocks_regex, news_headlines_regex)

__all__ = ["STRATEGIES", "news_blocks_regex", "news_headlines_regex", "news_items_markup"]
