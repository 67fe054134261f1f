"""Heuristic article detection and main-content location."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction, Tag

from readtime.content.models import ContentBoundary

logger = logging.getLogger(__name__)

# Most specific first.
CONTENT_SELECTORS = [
    "article",
    '[role="article"]',
    ".post-content",
    ".entry-content",
    ".article-content",
    "#content",
    "main",
]

# Rendered text a selector match needs before it is trusted as the article.
MIN_CONTENT_CHARS = 500

# More paragraphs than this makes a page article-like.
MIN_ARTICLE_PARAGRAPHS = 5

_HIDDEN_TAGS = ["script", "style", "noscript", "template"]
_NON_TEXT = (Comment, Declaration, Doctype, ProcessingInstruction)


def parse_document(document: str | BeautifulSoup) -> BeautifulSoup:
    """Accept raw HTML or an already parsed soup."""
    if isinstance(document, BeautifulSoup):
        return document
    return BeautifulSoup(document or "", "html.parser")


def rendered_text(element: Tag) -> str:
    """Visible text of an element with whitespace collapsed."""
    parts: list[str] = []
    for string in element.find_all(string=True):
        if isinstance(string, _NON_TEXT):
            continue
        if string.find_parent(_HIDDEN_TAGS) is not None:
            continue
        chunk = " ".join(string.split())
        if chunk:
            parts.append(chunk)
    return " ".join(parts)


def is_article(document: str | BeautifulSoup) -> bool:
    """Cheap admission test: does this page look like an article?"""
    soup = parse_document(document)
    if soup.find("article") is not None:
        return True
    if soup.find(attrs={"role": "article"}) is not None:
        return True
    return len(soup.find_all("p")) > MIN_ARTICLE_PARAGRAPHS


def locate_content(document: str | BeautifulSoup) -> ContentBoundary:
    """Identify the element holding the main content.

    Tries the selector list, then the parent with the most paragraph
    children, then falls back to the whole document.
    """
    soup = parse_document(document)

    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = rendered_text(element)
        if len(text) > MIN_CONTENT_CHARS:
            logger.debug("Content matched selector %r (%d chars)", selector, len(text))
            return ContentBoundary(
                element=element,
                strategy="selector",
                text=text,
                selector=selector,
            )

    parent = _largest_paragraph_parent(soup)
    if parent is not None:
        logger.debug("Content located by paragraph parent <%s>", parent.name)
        return ContentBoundary(
            element=parent,
            strategy="paragraph_parent",
            text=rendered_text(parent),
        )

    logger.debug("No content boundary found, using whole document")
    body = soup.body or soup
    return ContentBoundary(element=None, strategy="document", text=rendered_text(body))


def _largest_paragraph_parent(soup: BeautifulSoup) -> Tag | None:
    counts: dict[int, int] = {}
    best: Tag | None = None
    best_count = 0
    for paragraph in soup.find_all("p"):
        parent = paragraph.parent
        if parent is None:
            continue
        count = counts.get(id(parent), 0) + 1
        counts[id(parent)] = count
        if count > best_count:
            best_count = count
            best = parent
    return best
