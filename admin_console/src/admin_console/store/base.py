"""Defines the DocumentStore protocol for submission storage backends."""

from typing import Any, Dict, List, Optional, Protocol

from admin_console.models import Submission, SubmissionQuery


class StoreError(Exception):
    """
    Raised by store adapters when a remote call fails.

    ``transient`` marks failures worth retrying (timeouts, connection errors,
    throttling and server errors). Everything else is permanent.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, transient: bool = False):
        self.message = message
        self.status_code = status_code
        self.transient = transient
        super().__init__(self.message)


class DocumentStore(Protocol):
    """
    A protocol that defines the interface for all submission stores.

    Any backend able to serve ordered, cursor-bounded queries with an optional
    ``createdAt >=`` restriction, plus point updates and deletes by id, can
    back the submission browser.
    """

    async def fetch(self, query: SubmissionQuery) -> List[Submission]:
        """
        Run a page query.

        Args:
            query: Ordering, filter, cursor and limit to apply.

        Returns:
            At most ``query.limit`` submissions in query order.
        """
        ...

    async def update_fields(self, submission_id: str, fields: Dict[str, Any]) -> None:
        """
        Overwrite the given top-level fields of one document.

        Args:
            submission_id: Document id.
            fields: Field names mapped to their new values.
        """
        ...

    async def delete(self, submission_id: str) -> None:
        """
        Delete one document by id.

        Args:
            submission_id: Document id.
        """
        ...
