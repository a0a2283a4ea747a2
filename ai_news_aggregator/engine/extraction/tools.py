"""Strategies turning AI tool directory pages into raw tool dicts."""

from __future__ import annotations

import re
from typing import Any

from selectolax.lexbor import LexborHTMLParser

from .common import clean_text, first_node, first_text, match_cards, parse_attributes

CARD_SELECTORS = ("div.tool-card", "li.li", "div.tool-item", "article.tool", "div.ai-tool")
NAME_SELECTORS = (".tool-name", ".ai_link span", "h2", "h3", "h4", ".name")
DESCRIPTION_SELECTORS = (".tool-description", ".short_desc", ".description", "p.desc", "p")
CATEGORY_SELECTORS = (".category", ".task_label", ".tag", ".badge")
LINK_SELECTORS = ("a.ai_link[href]", "a.tool-link[href]", "a[href]")

_CARD_BLOCK_RE = re.compile(
    r"<(?P<tag>div|li|article)\b[^>]*class=[\"'][^\"']*\btool(?:[-_][\w-]*)?(?=[\s\"'])[^\"']*[\"'][^>]*>(?P<body>.*?)</(?P=tag)>",
    re.IGNORECASE | re.DOTALL,
)
_HEADING_RE = re.compile(r"<h([2-4])\b[^>]*>(?P<text>.*?)</h\1>", re.IGNORECASE | re.DOTALL)
_PARAGRAPH_RE = re.compile(r"<p\b[^>]*>(?P<text>.*?)</p>", re.IGNORECASE | re.DOTALL)
_HREF_RE = re.compile(r"<a\b[^>]*href=[\"'](?P<href>[^\"']+)[\"']", re.IGNORECASE)
_CATEGORY_RE = re.compile(
    r"<(?P<tag>span|a|div)\b[^>]*class=[\"'][^\"']*\b(?:category|tag|task_label)\b[^\"']*[\"'][^>]*>(?P<text>.*?)</(?P=tag)>",
    re.IGNORECASE | re.DOTALL,
)
_ANCHOR_RE = re.compile(r"<a\b(?P<attrs>[^>]*)>(?P<text>.*?)</a>", re.IGNORECASE | re.DOTALL)


def tool_cards_markup(html: str) -> list[dict[str, Any]]:
    """Read known tool card markup with CSS selectors."""

    tree = LexborHTMLParser(html)
    items: list[dict[str, Any]] = []
    for card in match_cards(tree, CARD_SELECTORS):
        link_node = first_node(card, LINK_SELECTORS)
        items.append(
            {
                "name": first_text(card, NAME_SELECTORS),
                "description": first_text(card, DESCRIPTION_SELECTORS),
                "link": link_node.attributes.get("href") if link_node is not None else None,
                "category": first_text(card, CATEGORY_SELECTORS) or None,
            }
        )
    return items


def tool_cards_regex(html: str) -> list[dict[str, Any]]:
    """Looser pass over any element whose class mentions ``tool``."""

    items: list[dict[str, Any]] = []
    for block in _CARD_BLOCK_RE.finditer(html):
        body = block.group("body")
        heading = _HEADING_RE.search(body)
        paragraph = _PARAGRAPH_RE.search(body)
        href = _HREF_RE.search(body)
        category = _CATEGORY_RE.search(body)
        items.append(
            {
                "name": clean_text(heading.group("text")) if heading else "",
                "description": clean_text(paragraph.group("text")) if paragraph else "",
                "link": href.group("href") if href else None,
                "category": clean_text(category.group("text")) if category else None,
            }
        )
    return items


def tool_links_regex(html: str) -> list[dict[str, Any]]:
    """Last resort: anchors carrying a description attribute."""

    items: list[dict[str, Any]] = []
    for anchor in _ANCHOR_RE.finditer(html):
        attrs = parse_attributes(anchor.group("attrs"))
        description = attrs.get("data-description") or attrs.get("aria-description")
        if not description:
            continue
        items.append(
            {
                "name": attrs.get("title") or attrs.get("data-name") or clean_text(anchor.group("text")),
                "description": description,
                "link": attrs.get("href"),
                "category": attrs.get("data-category"),
            }
        )
    return items


STRATEGIES = (tool_cards_markup, tool_cards_regex, tool_links_regex)

__all__ = ["STRATEGIES", "tool_cards_markup", "tool_cards_regex", "tool_links_regex"]
