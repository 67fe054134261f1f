"""Article detection and main-content location."""

from readtime.content.locator import is_article, locate_content, rendered_text
from readtime.content.models import ContentBoundary

__all__ = [
    "is_article",
    "locate_content",
    "rendered_text",
    "ContentBoundary",
]
