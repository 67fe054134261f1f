"""Reading-time estimation and scroll progress."""

from readtime.progress.calculator import (
    compute_progress,
    estimate_minutes,
    minutes_read,
    remaining_minutes,
    word_count,
)
from readtime.progress.models import BoundaryRect, Viewport

__all__ = [
    "compute_progress",
    "estimate_minutes",
    "minutes_read",
    "remaining_minutes",
    "word_count",
    "BoundaryRect",
    "Viewport",
]
