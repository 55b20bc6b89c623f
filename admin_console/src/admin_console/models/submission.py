"""
Pydantic models shared by the submission browser and the store adapters.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PAGE_SIZE = 8


class SortField(str, Enum):
    """Fields the submission list can be ordered by (store field names)."""
    CREATED_AT = "createdAt"
    TIMESTAMP = "timestamp"
    NAME = "name"
    EMAIL = "email"

    @property
    def label(self) -> str:
        return _SORT_FIELD_LABELS[self]


_SORT_FIELD_LABELS = {
    SortField.CREATED_AT: "Date",
    SortField.TIMESTAMP: "Timestamp",
    SortField.NAME: "Name",
    SortField.EMAIL: "Email",
}


class SortDirection(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"

    @property
    def label(self) -> str:
        return "Ascending" if self is SortDirection.ASCENDING else "Descending"


class Submission(BaseModel):
    """
    A contact form submission as held by the remote store.

    Timestamps are kept in whatever representation the store returned
    (datetime, ISO string or epoch milliseconds) so a malformed value never
    prevents a page from loading. Unknown document fields are preserved.
    """
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None
    created_at: Optional[Any] = Field(default=None, alias="createdAt")
    timestamp: Optional[Any] = None
    read: bool = False

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("name", "email", "message", mode="before")
    @classmethod
    def _text_fields_as_str(cls, value: Any) -> Any:
        # Documents are schemaless; render whatever was stored
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("read", mode="before")
    @classmethod
    def _null_read_is_unread(cls, value: Any) -> Any:
        return False if value is None else value

    @property
    def submitted_at(self) -> Optional[Any]:
        """Creation time, falling back to the legacy ``timestamp`` field."""
        return self.created_at or self.timestamp

    def field_value(self, field: str) -> Any:
        """Return the raw value stored under a store field name."""
        if field == SortField.CREATED_AT.value:
            return self.created_at
        if field == "id":
            return self.id
        if field in type(self).model_fields:
            return getattr(self, field)
        return (self.model_extra or {}).get(field)

    def has_field(self, field: str) -> bool:
        """True if the underlying document carries ``field`` at all."""
        if field == SortField.CREATED_AT.value:
            return "created_at" in self.model_fields_set
        if field in type(self).model_fields:
            return field in self.model_fields_set
        return field in (self.model_extra or {})


class PageCursor(BaseModel):
    """
    Position of the last item of a page under a given ordering.

    Opaque to the browser; store adapters resume strictly after
    ``(value, document_id)``.
    """
    sort_field: SortField
    value: Any = None
    document_id: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_submission(cls, submission: Submission, sort_field: SortField) -> "PageCursor":
        return cls(
            sort_field=sort_field,
            value=submission.field_value(sort_field.value),
            document_id=submission.id,
        )


class SubmissionQuery(BaseModel):
    """A single ordered, optionally filtered and cursor-bounded page request."""
    collection: str = "submissions"
    sort_field: SortField = SortField.CREATED_AT
    sort_direction: SortDirection = SortDirection.DESCENDING
    limit: int = PAGE_SIZE + 1
    created_since: Optional[datetime] = None
    start_after: Optional[PageCursor] = None

    model_config = ConfigDict(frozen=True)
