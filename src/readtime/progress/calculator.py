"""Word counts, reading-time estimates and scroll progress."""

from __future__ import annotations

import math

from readtime.progress.models import BoundaryRect, Viewport

DEFAULT_WORDS_PER_MINUTE = 200

# Within this many pixels of the end, progress snaps to 100.
SNAP_BUFFER_PX = 100


def word_count(text: str | None) -> int:
    """Count whitespace-separated tokens."""
    if not text:
        return 0
    return len(text.split())


def estimate_minutes(
    word_count: int, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE
) -> int:
    """Reading time in whole minutes, rounded up.

    Returns 0 when there is no content, otherwise at least 1.
    """
    if words_per_minute <= 0:
        raise ValueError(f"words_per_minute must be positive, got {words_per_minute}")
    if not word_count or word_count < 0:
        return 0
    return max(1, math.ceil(word_count / words_per_minute))


def compute_progress(
    viewport: Viewport,
    boundary: BoundaryRect | None = None,
    buffer: float = SNAP_BUFFER_PX,
) -> float:
    """Percent of the content (or whole page) scrolled through, in [0, 100]."""
    if boundary is None:
        return _page_progress(viewport, buffer)
    return _bounded_progress(viewport, boundary, buffer)


def _page_progress(viewport: Viewport, buffer: float) -> float:
    scrollable = viewport.document_height - viewport.viewport_height
    if scrollable <= 0:
        return 100.0

    remaining = viewport.document_height - (viewport.scroll_offset + viewport.viewport_height)
    if remaining < buffer:
        return 100.0

    return _clamp(viewport.scroll_offset / scrollable * 100)


def _bounded_progress(viewport: Viewport, boundary: BoundaryRect, buffer: float) -> float:
    viewport_bottom = viewport.scroll_offset + viewport.viewport_height
    if viewport_bottom >= boundary.bottom - buffer:
        return 100.0

    range_start = max(0.0, boundary.top)
    range_end = boundary.bottom - viewport.viewport_height
    scroll_range = range_end - range_start
    if scroll_range <= 0:
        # The boundary fits on one screen.
        return 100.0

    return _clamp((viewport.scroll_offset - range_start) / scroll_range * 100)


def remaining_minutes(reading_time: int, progress: float) -> int:
    """Minutes left to read at the given progress."""
    left = reading_time * (100 - _clamp(progress)) / 100
    return max(0, math.ceil(left))


def minutes_read(reading_time: int, progress: float) -> int:
    """Approximate minutes already spent reading."""
    return round((reading_time or 0) * _clamp(progress or 0) / 100)


def _clamp(percent: float) -> float:
    return float(min(100.0, max(0.0, percent)))
