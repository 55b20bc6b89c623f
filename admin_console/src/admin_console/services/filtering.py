"""Client-side text filter over the page already loaded."""

from typing import List, Optional, Sequence

from admin_console.models import Submission

SEARCH_FIELDS = ("name", "email", "message")


def matches(submission: Submission, search: str) -> bool:
    """Case-insensitive substring match on name, email or message."""
    needle = search.lower()
    for field in SEARCH_FIELDS:
        value = getattr(submission, field)
        if value and needle in str(value).lower():
            return True
    return False


def filter_submissions(items: Sequence[Submission], search: Optional[str]) -> List[Submission]:
    """
    Narrow a loaded page by a search string.

    Never fetches anything: rows outside ``items`` can't match.
    """
    if not search:
        return list(items)
    return [item for item in items if matches(item, search)]
