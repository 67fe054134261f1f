"""Data models for the content module."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ContentBoundary:
    """The region of a document considered the article body.

    ``element`` is None when no boundary was found; progress is then
    measured against the whole document.
    """

    element: Any | None
    strategy: str  # "selector" | "paragraph_parent" | "document"
    text: str = ""
    selector: str | None = None

    @property
    def found(self) -> bool:
        return self.element is not None
