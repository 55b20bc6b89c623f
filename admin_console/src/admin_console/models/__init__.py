"""Data models for the admin console."""

from .submission import (
    PAGE_SIZE,
    PageCursor,
    SortDirection,
    SortField,
    Submission,
    SubmissionQuery,
)

__all__ = [
    "PAGE_SIZE",
    "PageCursor",
    "SortDirection",
    "SortField",
    "Submission",
    "SubmissionQuery",
]
