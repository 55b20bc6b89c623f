"""In-process document store with Firestore-like query semantics."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from loguru import logger

from admin_console.models import PageCursor, SortDirection, Submission, SubmissionQuery
from admin_console.store.base import StoreError


def _type_rank(value: Any) -> int:
    # Firestore orders values of different types by type before value.
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        return 2
    if isinstance(value, datetime):
        return 3
    if isinstance(value, str):
        return 4
    return 9


def order_key(value: Any) -> Tuple[int, Any]:
    """Sort key placing ``value`` where Firestore would order it."""
    rank = _type_rank(value)
    if rank == 0:
        return (rank, 0)
    if rank == 3:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return (rank, value)
    if rank == 9:
        return (rank, str(value))
    return (rank, value)


class InMemoryDocumentStore:
    """
    Dictionary-backed implementation of the DocumentStore protocol.

    Mirrors the behaviour the console relies on from Firestore: documents
    missing the sort field are left out of ordered queries, ties on the sort
    value are broken by document id in the query direction, and cursors
    resume strictly after ``(value, id)``.
    """

    def __init__(self, documents: Optional[Iterable[Dict[str, Any]]] = None):
        self._documents: Dict[str, Dict[str, Any]] = {}
        for document in documents or []:
            self.add(document)

    def add(self, data: Dict[str, Any], document_id: Optional[str] = None) -> str:
        """Insert a document and return its id."""
        data = dict(data)
        document_id = document_id or data.pop("id", None) or uuid.uuid4().hex
        data.pop("id", None)
        self._documents[document_id] = data
        return document_id

    def get(self, document_id: str) -> Optional[Submission]:
        data = self._documents.get(document_id)
        if data is None:
            return None
        return Submission(id=document_id, **data)

    def __len__(self) -> int:
        return len(self._documents)

    async def fetch(self, query: SubmissionQuery) -> List[Submission]:
        field = query.sort_field.value
        descending = query.sort_direction is SortDirection.DESCENDING

        rows = [
            (order_key(data[field]), document_id)
            for document_id, data in self._documents.items()
            if field in data and self._matches(data, query)
        ]
        rows.sort(reverse=descending)

        if query.start_after is not None:
            boundary = self._cursor_key(query.start_after)
            if descending:
                rows = [row for row in rows if row < boundary]
            else:
                rows = [row for row in rows if row > boundary]

        page = rows[:query.limit]
        logger.debug(f"In-memory query on '{field}' ({query.sort_direction.value}) returned {len(page)} documents")
        return [Submission(id=document_id, **self._documents[document_id]) for _, document_id in page]

    async def update_fields(self, submission_id: str, fields: Dict[str, Any]) -> None:
        if submission_id not in self._documents:
            raise StoreError(f"No document to update: {submission_id}", status_code=404)
        self._documents[submission_id].update(fields)

    async def delete(self, submission_id: str) -> None:
        self._documents.pop(submission_id, None)

    @staticmethod
    def _matches(data: Dict[str, Any], query: SubmissionQuery) -> bool:
        if query.created_since is None:
            return True
        created_at = data.get("createdAt")
        if not isinstance(created_at, datetime):
            return False
        return order_key(created_at) >= order_key(query.created_since)

    @staticmethod
    def _cursor_key(cursor: PageCursor) -> Tuple[Tuple[int, Any], str]:
        return (order_key(cursor.value), cursor.document_id)
