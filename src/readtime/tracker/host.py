"""Interfaces to the page the tracker runs in and the widgets it drives."""

from __future__ import annotations

from abc import ABC, abstractmethod

from bs4 import BeautifulSoup

from readtime.content.models import ContentBoundary
from readtime.progress.models import BoundaryRect, Viewport
from readtime.store.models import ReadingRecord


class PageHost(ABC):
    """The page being read: its document, geometry and scroll control."""

    @property
    @abstractmethod
    def url(self) -> str:
        ...

    @property
    @abstractmethod
    def title(self) -> str:
        ...

    @abstractmethod
    def document(self) -> str | BeautifulSoup:
        """Current document as HTML or a parsed soup."""
        ...

    @abstractmethod
    def viewport(self) -> Viewport:
        """Current scroll offset, document height and viewport height."""
        ...

    @abstractmethod
    def measure(self, boundary: ContentBoundary) -> BoundaryRect | None:
        """Document-coordinate extent of a located boundary, if it can be laid out."""
        ...

    @abstractmethod
    def scroll_to(self, offset: float) -> None:
        ...


class TrackerListener:
    """Receives tracker output. Every hook is a no-op by default."""

    def show_badge(self, minutes: int) -> None:
        pass

    def update_progress(self, percent: float, completed: bool) -> None:
        pass

    def offer_resume(self, record: ReadingRecord, remaining_minutes: int) -> None:
        pass
