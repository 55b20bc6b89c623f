"""
Cloud Firestore adapter for the submission browser.

Talks to the Firestore REST API with httpx so the console needs no Google SDK.
Requests are authorised with the signed-in user's ID token, which lets
Firestore security rules enforce the ``admin`` claim server-side as well.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from loguru import logger

from admin_console.config import Settings, get_settings
from admin_console.models import SortDirection, Submission, SubmissionQuery
from admin_console.store.base import StoreError
from admin_console.store.values import decode_fields, encode_fields, encode_value

FIRESTORE_API = "https://firestore.googleapis.com/v1"

TokenProvider = Callable[[], Awaitable[Optional[str]]]

_DIRECTIONS = {
    SortDirection.ASCENDING: "ASCENDING",
    SortDirection.DESCENDING: "DESCENDING",
}


class FirestoreStore:
    """
    DocumentStore implementation backed by the Firestore REST API.

    Provides the three remote capabilities the browser needs (ordered page
    queries, field updates and deletes) and maps HTTP failures onto
    ``StoreError`` with a ``transient`` flag for the retry policy.
    """

    def __init__(
        self,
        project_id: str,
        database: str = "(default)",
        collection: str = "submissions",
        token_provider: Optional[TokenProvider] = None,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
        api_root: str = FIRESTORE_API,
    ):
        """
        Initialize the store adapter.

        Args:
            project_id: Google Cloud project id
            database: Firestore database id
            collection: Collection holding the submissions
            token_provider: Coroutine returning the current ID token, if any
            timeout: Request timeout in seconds
            http_client: Shared client; a short-lived one is opened per call otherwise
            api_root: Base URL of the Firestore REST API
        """
        self.project_id = project_id
        self.database = database
        self.collection = collection
        self.token_provider = token_provider
        self.timeout = timeout
        self._client = http_client
        self.api_root = api_root.rstrip("/")
        self.documents_path = f"projects/{project_id}/databases/{database}/documents"

        logger.info(f"Initialized FirestoreStore for {self.documents_path}")

    @classmethod
    def from_settings(cls, token_provider: Optional[TokenProvider] = None,
                      settings: Optional[Settings] = None) -> "FirestoreStore":
        settings = settings or get_settings()
        if not settings.firebase_project_id:
            raise ValueError("firebase_project_id must be set to use the Firestore store")
        return cls(
            project_id=settings.firebase_project_id,
            database=settings.firestore_database,
            collection=settings.submissions_collection,
            token_provider=token_provider,
            timeout=settings.http_timeout,
        )

    def document_name(self, collection: str, document_id: str) -> str:
        return f"{self.documents_path}/{collection}/{document_id}"

    def build_structured_query(self, query: SubmissionQuery) -> Dict[str, Any]:
        """Translate a SubmissionQuery into a Firestore ``structuredQuery``."""
        direction = _DIRECTIONS[query.sort_direction]
        structured: Dict[str, Any] = {
            "from": [{"collectionId": query.collection}],
            # __name__ keeps the order total so "start after" is unambiguous
            "orderBy": [
                {"field": {"fieldPath": query.sort_field.value}, "direction": direction},
                {"field": {"fieldPath": "__name__"}, "direction": direction},
            ],
            "limit": query.limit,
        }

        if query.created_since is not None:
            structured["where"] = {
                "fieldFilter": {
                    "field": {"fieldPath": "createdAt"},
                    "op": "GREATER_THAN_OR_EQUAL",
                    "value": encode_value(query.created_since),
                }
            }

        if query.start_after is not None:
            cursor = query.start_after
            structured["startAt"] = {
                "values": [
                    encode_value(cursor.value),
                    {"referenceValue": self.document_name(query.collection, cursor.document_id)},
                ],
                "before": False,
            }

        return structured

    async def fetch(self, query: SubmissionQuery) -> List[Submission]:
        body = {"structuredQuery": self.build_structured_query(query)}
        response = await self._request("POST", f"{self.api_root}/{self.documents_path}:runQuery", json=body)

        try:
            results = response.json()
            submissions = [
                self._to_submission(entry["document"])
                for entry in results
                if "document" in entry
            ]
        except Exception as e:
            raise StoreError(f"Failed to parse query response: {str(e)}") from e

        logger.debug(f"Firestore query on '{query.sort_field.value}' returned {len(submissions)} documents")
        return submissions

    async def update_fields(self, submission_id: str, fields: Dict[str, Any]) -> None:
        name = self.document_name(self.collection, submission_id)
        params = [("updateMask.fieldPaths", field) for field in fields]
        params.append(("currentDocument.exists", "true"))
        await self._request(
            "PATCH",
            f"{self.api_root}/{name}",
            params=params,
            json={"fields": encode_fields(fields)},
        )
        logger.info(f"Updated fields {sorted(fields)} on {name}")

    async def delete(self, submission_id: str) -> None:
        name = self.document_name(self.collection, submission_id)
        await self._request("DELETE", f"{self.api_root}/{name}")
        logger.info(f"Deleted {name}")

    async def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token_provider is not None:
            token = await self.token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = await self._headers()
        try:
            if self._client is not None:
                response = await self._client.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.TransportError as e:
            raise StoreError(f"{method} {url} failed: {e!r}", transient=True) from e

        if response.status_code >= 400:
            raise _error_from_response(response)
        return response

    @staticmethod
    def _to_submission(document: Dict[str, Any]) -> Submission:
        data = decode_fields(document.get("fields", {}))
        data.pop("id", None)
        document_id = document["name"].rsplit("/", 1)[-1]
        return Submission(id=document_id, **data)


def _error_from_response(response: httpx.Response) -> StoreError:
    message = response.text
    try:
        payload = response.json()
        if isinstance(payload, list) and payload:
            payload = payload[0]
        message = payload.get("error", {}).get("message", message)
    except (ValueError, AttributeError):
        logger.debug(f"Non-JSON error body from Firestore (HTTP {response.status_code})")

    status = response.status_code
    transient = status == 429 or status >= 500
    return StoreError(f"HTTP {status}: {message}", status_code=status, transient=transient)
