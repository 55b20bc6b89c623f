"""Translation of the console's sort/filter selections into store queries."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from admin_console.models import PAGE_SIZE, PageCursor, SortDirection, SortField, SubmissionQuery

LATEST_WINDOW = timedelta(hours=24)


def build_query(
    sort_field: SortField,
    sort_direction: SortDirection,
    latest_only: bool,
    after: Optional[PageCursor] = None,
    *,
    page_size: int = PAGE_SIZE,
    now: Optional[datetime] = None,
    window: timedelta = LATEST_WINDOW,
    collection: str = "submissions",
) -> SubmissionQuery:
    """
    Build the query for one page of submissions.

    One item more than ``page_size`` is requested so the caller can tell
    whether a next page exists without a count query. ``latest_only`` adds a
    ``createdAt >= now - window`` restriction on top of the chosen ordering;
    the backend may require a composite index for that combination.

    Args:
        sort_field: Field to order by
        sort_direction: Ascending or descending
        latest_only: Restrict to submissions created within ``window``
        after: Resume strictly after this cursor
        page_size: Items per page
        now: Reference time for ``latest_only`` (defaults to current UTC time)
        window: Look-back window for ``latest_only``
        collection: Collection to query

    Returns:
        SubmissionQuery: The page query
    """
    created_since = None
    if latest_only:
        created_since = (now or datetime.now(timezone.utc)) - window

    if after is not None and after.sort_field is not sort_field:
        raise ValueError(
            f"Cursor captured under '{after.sort_field.value}' cannot resume a query on '{sort_field.value}'"
        )

    return SubmissionQuery(
        collection=collection,
        sort_field=sort_field,
        sort_direction=sort_direction,
        limit=page_size + 1,
        created_since=created_since,
        start_after=after,
    )
