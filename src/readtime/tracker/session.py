"""Per-page-visit tracking loop."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable

from readtime.content.locator import is_article, locate_content, parse_document
from readtime.content.models import ContentBoundary
from readtime.progress.calculator import (
    compute_progress,
    estimate_minutes,
    remaining_minutes,
    word_count,
)
from readtime.progress.models import Viewport
from readtime.settings import Settings
from readtime.store.models import ReadingRecord
from readtime.store.parser import domain_from_url
from readtime.store.progress_store import ProgressStore
from readtime.tracker.host import PageHost, TrackerListener

logger = logging.getLogger(__name__)

# Progress must exceed this before a visit is worth saving.
ADMISSION_THRESHOLD = 5.0
# Saved progress must exceed this before a resume is offered.
RESUME_MIN_PROGRESS = 10.0

DEFAULT_SAVE_INTERVAL = 5.0
DEFAULT_MUTATION_DEBOUNCE = 0.5
DEFAULT_URL_POLL_INTERVAL = 1.0
DEFAULT_URL_CHANGE_DELAY = 1.0
# Longest stop() waits on the teardown save before dropping it.
DEFAULT_FLUSH_TIMEOUT = 1.0


@dataclass
class PageVisit:
    """State for the article currently being tracked."""

    url: str
    boundary: ContentBoundary
    word_count: int
    reading_time: int
    resume_record: ReadingRecord | None = None


class PageTracker:
    """Drives content location, progress updates and saves for one page host.

    Triggers (periodic save, coalesced scroll updates, debounced mutation
    checks and URL polling) all run on one asyncio loop and never overlap.
    Navigating to a new URL cancels the previous visit's saver before the
    next checkpoint runs.

    Args:
        host: The page being read.
        store: Where progress is persisted.
        settings: Reading speed and widget toggles (default: Settings()).
        listener: Receives badge, progress and resume output.
        save_interval: Seconds between periodic saves.
        mutation_debounce: Quiet period after DOM mutations before re-checking.
        url_poll_interval: Seconds between URL change checks.
        url_change_delay: Delay after a URL change before re-checking.
        flush_timeout: Seconds stop() waits for the teardown save.
        clock: Returns the current time in seconds.
    """

    def __init__(
        self,
        host: PageHost,
        store: ProgressStore,
        settings: Settings | None = None,
        listener: TrackerListener | None = None,
        *,
        save_interval: float = DEFAULT_SAVE_INTERVAL,
        mutation_debounce: float = DEFAULT_MUTATION_DEBOUNCE,
        url_poll_interval: float = DEFAULT_URL_POLL_INTERVAL,
        url_change_delay: float = DEFAULT_URL_CHANGE_DELAY,
        flush_timeout: float = DEFAULT_FLUSH_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ):
        self.host = host
        self.store = store
        self.settings = settings or Settings()
        self.listener = listener or TrackerListener()
        self.save_interval = save_interval
        self.mutation_debounce = mutation_debounce
        self.url_poll_interval = url_poll_interval
        self.url_change_delay = url_change_delay
        self.flush_timeout = flush_timeout
        self._clock = clock

        self.visit: PageVisit | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._saver_task: asyncio.Task | None = None
        self._url_task: asyncio.Task | None = None
        self._checkpoint_handle: asyncio.TimerHandle | None = None
        self._frame_pending = False
        self._last_url: str | None = None
        self._last_timestamp = 0

    async def __aenter__(self) -> PageTracker:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # ---- Lifecycle ----

    async def start(self) -> None:
        """Run the initial checkpoint and begin watching for navigation."""
        self._loop = asyncio.get_running_loop()
        self._last_url = self.host.url
        self.check_page()
        self._url_task = self._loop.create_task(self._watch_url())

    async def stop(self) -> None:
        """Flush progress and cancel every timer and task.

        The teardown save runs off the loop and is dropped after
        ``flush_timeout`` seconds, so a locked database cannot hold up
        navigation.
        """
        await self._flush_bounded()
        tasks = [t for t in (self._saver_task, self._url_task) if t is not None]
        self._cancel_visit()
        self._cancel_checkpoint()
        if self._url_task is not None:
            self._url_task.cancel()
            self._url_task = None
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._loop = None

    # ---- Checkpoints ----

    def check_page(self) -> PageVisit | None:
        """Re-evaluate the document.

        Starts tracking a new article, or re-locates the content of the one
        already tracked on this URL.
        """
        url = self.host.url
        if self.visit is not None and self.visit.url != url:
            self._cancel_visit()

        soup = parse_document(self.host.document())
        if not is_article(soup):
            logger.debug("Not an article: %s", url)
            return self.visit

        boundary = locate_content(soup)
        words = word_count(boundary.text)
        minutes = estimate_minutes(words, self.settings.reading_speed)
        if self.visit is not None:
            return self._refresh_visit(boundary, words, minutes)

        self.visit = PageVisit(
            url=url,
            boundary=boundary,
            word_count=words,
            reading_time=minutes,
        )
        logger.debug(
            "Tracking %s: %d words, %d min, boundary via %s",
            url, words, minutes, boundary.strategy,
        )

        if self.settings.show_badge and minutes >= 1:
            self.listener.show_badge(minutes)
        if self.settings.show_progress_bar:
            self._render_progress()
        if self.settings.show_resume_notification:
            self._offer_resume()

        self._start_saver()
        return self.visit

    def notify_mutation(self) -> None:
        """Schedule a checkpoint once the document stops changing."""
        if self._loop is None:
            self.check_page()
            return
        self._cancel_checkpoint()
        self._checkpoint_handle = self._loop.call_later(
            self.mutation_debounce, self._run_checkpoint
        )

    def notify_scroll(self) -> None:
        """Recompute progress at most once per loop iteration."""
        if self._loop is None:
            self._render_progress()
            return
        if self._frame_pending:
            return
        self._frame_pending = True
        self._loop.call_soon(self._on_frame)

    # ---- Progress ----

    def current_progress(self, viewport: Viewport | None = None) -> float:
        """Progress through the tracked content, or the page if none was found."""
        viewport = viewport or self.host.viewport()
        rect = None
        if self.visit is not None and self.visit.boundary.found:
            rect = self.host.measure(self.visit.boundary)
        return compute_progress(viewport, rect)

    def save_progress(self) -> bool:
        """Persist current progress if it clears the admission threshold."""
        record = self._snapshot()
        if record is None:
            return False
        return self.store.save(record)

    def flush(self) -> bool:
        """Best-effort save; never raises."""
        try:
            return self.save_progress()
        except Exception as e:
            logger.warning("Dropped progress save: %s", e)
            return False

    def _snapshot(self) -> ReadingRecord | None:
        """Record for the current position, or None below the admission threshold."""
        if self.visit is None:
            return None
        viewport = self.host.viewport()
        progress = self.current_progress(viewport)
        if progress <= ADMISSION_THRESHOLD:
            return None

        return ReadingRecord(
            url=self.visit.url,
            title=self.host.title,
            domain=domain_from_url(self.visit.url),
            scroll_position=viewport.scroll_offset,
            progress=progress,
            timestamp=self._next_timestamp(),
            completed=self.store.is_completed(progress),
            reading_time=self.visit.reading_time,
            word_count=self.visit.word_count,
        )

    async def _flush_bounded(self) -> bool:
        try:
            record = self._snapshot()
        except Exception as e:
            logger.warning("Dropped teardown save: %s", e)
            return False
        if record is None:
            return False
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.store.save, record), self.flush_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Dropped teardown save for %s after %.1fs", record.url, self.flush_timeout
            )
            return False
        except Exception as e:
            logger.warning("Dropped teardown save for %s: %s", record.url, e)
            return False

    # ---- Resume ----

    def resume(self) -> bool:
        """Scroll back to the saved position offered for this visit."""
        if self.visit is None or self.visit.resume_record is None:
            return False
        self.host.scroll_to(self.visit.resume_record.scroll_position)
        self.visit.resume_record = None
        return True

    def dismiss_resume(self) -> bool:
        """Decline the resume offer and record where the reader is now."""
        if self.visit is None:
            return False
        self.visit.resume_record = None
        return self.save_progress()

    # ---- Internals ----

    def _refresh_visit(
        self, boundary: ContentBoundary, words: int, minutes: int
    ) -> PageVisit:
        """Update the current visit after the document changed in place."""
        visit = self.visit
        changed = minutes != visit.reading_time
        visit.boundary = boundary
        visit.word_count = words
        visit.reading_time = minutes
        logger.debug(
            "Re-located content for %s: %d words, %d min, boundary via %s",
            visit.url, words, minutes, boundary.strategy,
        )
        if changed and self.settings.show_badge and minutes >= 1:
            self.listener.show_badge(minutes)
        return visit

    def _offer_resume(self) -> None:
        record = self.store.get(self.visit.url)
        if record is None or record.completed or record.progress <= RESUME_MIN_PROGRESS:
            return
        self.visit.resume_record = record
        self.listener.offer_resume(
            record, remaining_minutes(record.reading_time, record.progress)
        )

    def _render_progress(self) -> None:
        if self.visit is None or not self.settings.show_progress_bar:
            return
        percent = self.current_progress()
        self.listener.update_progress(percent, self.store.is_completed(percent))

    def _on_frame(self) -> None:
        self._frame_pending = False
        self._render_progress()

    def _run_checkpoint(self) -> None:
        self._checkpoint_handle = None
        self.check_page()

    def _start_saver(self) -> None:
        self._cancel_saver()
        if self._loop is None:
            return
        self._saver_task = self._loop.create_task(self._periodic_save())

    async def _periodic_save(self) -> None:
        while True:
            await asyncio.sleep(self.save_interval)
            # A failed tick must not stop later saves.
            self.flush()

    async def _watch_url(self) -> None:
        while True:
            await asyncio.sleep(self.url_poll_interval)
            url = self.host.url
            if url == self._last_url:
                continue
            logger.debug("URL changed: %s -> %s", self._last_url, url)
            self._last_url = url
            self._cancel_visit()
            self._cancel_checkpoint()
            self._checkpoint_handle = self._loop.call_later(
                self.url_change_delay, self._run_checkpoint
            )

    def _cancel_visit(self) -> None:
        self._cancel_saver()
        self.visit = None

    def _cancel_saver(self) -> None:
        if self._saver_task is not None:
            self._saver_task.cancel()
            self._saver_task = None

    def _cancel_checkpoint(self) -> None:
        if self._checkpoint_handle is not None:
            self._checkpoint_handle.cancel()
            self._checkpoint_handle = None

    def _next_timestamp(self) -> int:
        """Epoch milliseconds, strictly increasing across this tracker's saves."""
        now = int(self._clock() * 1000)
        if now <= self._last_timestamp:
            now = self._last_timestamp + 1
        self._last_timestamp = now
        return now
