"""
Paginated submission browser.

Owns the page cache (cursors, current page, loaded items) and drives page
loads, navigation, read toggling and deletion against an injected
DocumentStore. Only this class ever touches the cursor list.
"""

import asyncio
import inspect
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from loguru import logger

from admin_console.config import Settings, get_settings
from admin_console.models import (
    PAGE_SIZE,
    PageCursor,
    SortDirection,
    SortField,
    Submission,
    SubmissionQuery,
)
from admin_console.services.filtering import filter_submissions
from admin_console.services.query_builder import LATEST_WINDOW, build_query
from admin_console.store.base import DocumentStore
from admin_console.utils.csv_export import export_to_csv, submission_export_rows
from admin_console.utils.dates import DEFAULT_DATE_FORMAT
from admin_console.utils.retry import with_exponential_backoff

ConfirmCallback = Callable[[Submission], Union[bool, Awaitable[bool]]]


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class SubmissionBrowser:
    """
    Cursor-paginated view over the submissions collection.

    Each page is fetched with one extra item; when that sentinel comes back
    the last displayed item becomes the cursor for the following page.
    Cursors are only valid under the ordering and filter they were captured
    with, so changing either resets the browser to page 0.
    """

    def __init__(
        self,
        store: DocumentStore,
        page_size: int = PAGE_SIZE,
        *,
        sort_field: SortField = SortField.CREATED_AT,
        sort_direction: SortDirection = SortDirection.DESCENDING,
        latest_only: bool = False,
        latest_window: timedelta = LATEST_WINDOW,
        collection: str = "submissions",
        fetch_timeout: float = 15.0,
        max_retries: int = 3,
        initial_backoff: float = 0.5,
        max_backoff: float = 8.0,
        date_format: str = DEFAULT_DATE_FORMAT,
        display_timezone: str = "UTC",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the browser.

        Args:
            store: Backend serving page queries and mutations
            page_size: Items shown per page
            sort_field: Initial ordering field
            sort_direction: Initial ordering direction
            latest_only: Initially restrict to recent submissions
            latest_window: Look-back window for ``latest_only``
            collection: Collection to query
            fetch_timeout: Seconds allowed for one fetch attempt
            max_retries: Retries for transient fetch failures
            initial_backoff: First retry delay in seconds
            max_backoff: Upper bound for retry delays
            date_format: strftime format used in exports
            display_timezone: Timezone used in exports
            clock: Source of the current time (UTC)
        """
        self.store = store
        self.page_size = page_size
        self.sort_field = sort_field
        self.sort_direction = sort_direction
        self.latest_only = latest_only
        self.latest_window = latest_window
        self.collection = collection
        self.fetch_timeout = fetch_timeout
        self.date_format = date_format
        self.display_timezone = display_timezone
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.state = LoadState.IDLE
        self.items: List[Submission] = []
        self.current_page = 0
        self.has_next = False
        self.error: Optional[str] = None
        self.mutation_error: Optional[str] = None
        self.search = ""

        self._cursors: List[PageCursor] = []
        self._generation = 0
        self._fetch = with_exponential_backoff(
            max_retries=max_retries,
            initial_backoff=initial_backoff,
            max_backoff=max_backoff,
        )(self._fetch_once)

    @classmethod
    def from_settings(cls, store: DocumentStore, settings: Optional[Settings] = None) -> "SubmissionBrowser":
        settings = settings or get_settings()
        return cls(
            store,
            page_size=settings.page_size,
            latest_window=timedelta(hours=settings.latest_window_hours),
            collection=settings.submissions_collection,
            fetch_timeout=settings.fetch_timeout,
            max_retries=settings.fetch_max_retries,
            initial_backoff=settings.fetch_initial_backoff,
            max_backoff=settings.fetch_max_backoff,
            date_format=settings.date_format,
            display_timezone=settings.display_timezone,
        )

    @property
    def cursors(self) -> Tuple[PageCursor, ...]:
        return tuple(self._cursors)

    @property
    def is_busy(self) -> bool:
        """True while a page fetch is outstanding; navigation is disabled."""
        return self.state is LoadState.LOADING

    @property
    def has_prev(self) -> bool:
        return self.current_page > 0

    @property
    def visible_items(self) -> List[Submission]:
        """The loaded page narrowed by the current search text."""
        return filter_submissions(self.items, self.search)

    def build_page_query(self, page: int) -> SubmissionQuery:
        after = self._cursors[page - 1] if page > 0 else None
        return build_query(
            self.sort_field,
            self.sort_direction,
            self.latest_only,
            after,
            page_size=self.page_size,
            now=self._clock(),
            window=self.latest_window,
            collection=self.collection,
        )

    async def load_page(self, page: int) -> None:
        """
        Fetch ``page`` and make it the current page.

        Failures (after retries) move the browser to the ERROR state instead
        of raising; ``retry()`` reloads the same page.

        Args:
            page: Zero-based page index; pages past 0 need the previous page's cursor

        Raises:
            ValueError: If no cursor is stored for the page before ``page``
        """
        if page < 0:
            raise ValueError("page must be >= 0")
        if page > len(self._cursors):
            raise ValueError(f"No cursor stored for page {page - 1}; page {page} is unreachable")

        query = self.build_page_query(page)
        self._generation += 1
        generation = self._generation

        self.current_page = page
        self.state = LoadState.LOADING
        self.error = None
        logger.info(
            f"Loading page {page} ordered by {self.sort_field.value} {self.sort_direction.value}"
            f"{' (latest only)' if self.latest_only else ''}"
        )

        try:
            results = await self._fetch(query)
        except Exception as e:
            if generation != self._generation:
                logger.debug(f"Ignoring failure of superseded load for page {page}: {e!r}")
                return
            message = str(e) or f"{type(e).__name__} after {self.fetch_timeout}s"
            logger.error(f"Error loading page {page}: {message}")
            self.state = LoadState.ERROR
            self.error = message
            self.has_next = False
            return

        if generation != self._generation:
            logger.debug(f"Discarding superseded result for page {page}")
            return

        if len(results) > self.page_size:
            cursor = PageCursor.from_submission(results[self.page_size - 1], self.sort_field)
            if page < len(self._cursors):
                self._cursors[page] = cursor
            else:
                self._cursors.append(cursor)
            self.has_next = True
        else:
            del self._cursors[page:]
            self.has_next = False

        self.items = list(results[:self.page_size])
        self.state = LoadState.LOADED
        logger.info(f"Loaded page {page}: {len(self.items)} items, has_next={self.has_next}")

    async def ensure_loaded(self) -> None:
        """Load page 0 if nothing has been requested yet."""
        if self.state is LoadState.IDLE:
            await self.load_page(0)

    async def retry(self) -> None:
        """Reload the page whose fetch failed."""
        await self.load_page(self.current_page)

    async def go_next(self) -> None:
        if not self.has_next or self.is_busy:
            return
        await self.load_page(self.current_page + 1)

    async def go_prev(self) -> None:
        if self.current_page == 0 or self.is_busy:
            return
        await self.load_page(self.current_page - 1)

    async def set_sort_field(self, sort_field: SortField) -> None:
        sort_field = SortField(sort_field)
        if sort_field is self.sort_field:
            return
        self.sort_field = sort_field
        await self._reset()

    async def set_sort_direction(self, sort_direction: SortDirection) -> None:
        sort_direction = SortDirection(sort_direction)
        if sort_direction is self.sort_direction:
            return
        self.sort_direction = sort_direction
        await self._reset()

    async def set_latest_only(self, latest_only: bool) -> None:
        latest_only = bool(latest_only)
        if latest_only == self.latest_only:
            return
        self.latest_only = latest_only
        await self._reset()

    async def toggle_read(self, submission_id: str) -> bool:
        """
        Flip the read flag of one submission on the current page.

        The cached row is only updated after the store accepted the write.

        Returns:
            True if the flag was changed
        """
        item = self._find(submission_id)
        if item is None:
            self.mutation_error = f"Submission {submission_id} is not on the current page"
            return False

        new_value = not item.read
        try:
            await self.store.update_fields(submission_id, {"read": new_value})
        except Exception as e:
            logger.error(f"Error updating read flag of {submission_id}: {str(e)}")
            self.mutation_error = f"Could not update submission: {str(e)}"
            return False

        self.items = [
            row.model_copy(update={"read": new_value}) if row.id == submission_id else row
            for row in self.items
        ]
        logger.info(f"Marked {submission_id} as {'read' if new_value else 'unread'}")
        return True

    async def delete(self, submission_id: str, confirm: ConfirmCallback) -> bool:
        """
        Permanently delete a submission after explicit confirmation.

        Cursors from the current page onwards were computed against the old
        ordering and are dropped before the current page is reloaded. When
        that leaves a later page empty the browser steps back one page.

        Args:
            submission_id: Document id on the current page
            confirm: Asked with the submission; deletion only proceeds on True

        Returns:
            True if the submission was deleted
        """
        item = self._find(submission_id)
        if item is None:
            self.mutation_error = f"Submission {submission_id} is not on the current page"
            return False

        approved = confirm(item)
        if inspect.isawaitable(approved):
            approved = await approved
        if not approved:
            logger.info(f"Deletion of {submission_id} cancelled")
            return False

        try:
            await self.store.delete(submission_id)
        except Exception as e:
            logger.error(f"Error deleting {submission_id}: {str(e)}")
            self.mutation_error = f"Could not delete submission: {str(e)}"
            return False

        logger.info(f"Deleted submission {submission_id}")
        del self._cursors[self.current_page:]
        self.has_next = False
        await self.load_page(self.current_page)
        if self.state is LoadState.LOADED and not self.items and self.current_page > 0:
            # The deleted row was the last one on this page
            await self.load_page(self.current_page - 1)
        return True

    def dismiss_error(self) -> None:
        self.mutation_error = None

    def export_csv(self) -> Optional[bytes]:
        """CSV bytes for the visible rows, or None when nothing is visible."""
        rows = submission_export_rows(self.visible_items, self.date_format, self.display_timezone)
        return export_to_csv(rows)

    async def _fetch_once(self, query: SubmissionQuery) -> List[Submission]:
        return await asyncio.wait_for(self.store.fetch(query), timeout=self.fetch_timeout)

    async def _reset(self) -> None:
        self._cursors.clear()
        self.current_page = 0
        self.has_next = False
        await self.load_page(0)

    def _find(self, submission_id: str) -> Optional[Submission]:
        for item in self.items:
            if item.id == submission_id:
                return item
        return None
