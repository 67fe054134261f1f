"""Per-page-visit reading progress tracking."""

from readtime.tracker.host import PageHost, TrackerListener
from readtime.tracker.session import PageTracker, PageVisit

__all__ = [
    "PageHost",
    "TrackerListener",
    "PageTracker",
    "PageVisit",
]
