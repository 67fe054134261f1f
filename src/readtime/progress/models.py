"""Geometry snapshots used for progress calculation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Viewport:
    """Scroll state of a page, in CSS pixels."""

    scroll_offset: float
    document_height: float
    viewport_height: float


@dataclass(frozen=True)
class BoundaryRect:
    """Vertical extent of the content boundary in document coordinates."""

    top: float
    bottom: float

    @classmethod
    def from_client_rect(
        cls, client_top: float, height: float, scroll_offset: float
    ) -> BoundaryRect:
        """Convert a viewport-relative bounding rectangle."""
        top = client_top + scroll_offset
        return cls(top=top, bottom=top + height)
