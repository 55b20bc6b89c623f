"""
Unit tests for the Firestore REST adapter.

Requests are served by ``httpx.MockTransport`` so no network is touched.
"""

import json
from datetime import datetime, timezone

import httpx
import pytest

from admin_console.config import Settings
from admin_console.models import PageCursor, SortDirection, SortField, SubmissionQuery
from admin_console.store import FirestoreStore, StoreError

DOCS = "projects/demo/databases/(default)/documents"
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class Recorder:
    """Mock transport handler that records requests and replays one response."""

    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self.payload = payload if payload is not None else []
        self.text = text
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_store(handler, token="token-123"):
    async def token_provider():
        return token

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FirestoreStore(project_id="demo", token_provider=token_provider, http_client=client)


def query(**overrides):
    params = {"sort_field": SortField.CREATED_AT, "sort_direction": SortDirection.DESCENDING, "limit": 9}
    params.update(overrides)
    return SubmissionQuery(**params)


class TestStructuredQuery:
    """Test cases for build_structured_query."""

    def setup_method(self):
        """Set up test fixtures."""
        self.store = FirestoreStore(project_id="demo")

    def test_default_page_query(self):
        structured = self.store.build_structured_query(query())

        assert structured == {
            "from": [{"collectionId": "submissions"}],
            "orderBy": [
                {"field": {"fieldPath": "createdAt"}, "direction": "DESCENDING"},
                {"field": {"fieldPath": "__name__"}, "direction": "DESCENDING"},
            ],
            "limit": 9,
        }

    def test_latest_filter_and_cursor(self):
        cursor = PageCursor(sort_field=SortField.NAME, value="Bob", document_id="abc")

        structured = self.store.build_structured_query(query(
            sort_field=SortField.NAME,
            sort_direction=SortDirection.ASCENDING,
            created_since=T0,
            start_after=cursor,
        ))

        assert structured["where"] == {
            "fieldFilter": {
                "field": {"fieldPath": "createdAt"},
                "op": "GREATER_THAN_OR_EQUAL",
                "value": {"timestampValue": "2024-01-01T00:00:00.000000Z"},
            }
        }
        assert structured["startAt"] == {
            "values": [
                {"stringValue": "Bob"},
                {"referenceValue": f"{DOCS}/submissions/abc"},
            ],
            "before": False,
        }
        assert structured["orderBy"][0]["direction"] == "ASCENDING"


class TestFirestoreStore:
    """Test cases for FirestoreStore requests."""

    @pytest.mark.asyncio
    async def test_fetch_decodes_documents(self):
        handler = Recorder(payload=[
            {"readTime": "2024-01-01T00:00:00Z"},
            {"document": {
                "name": f"{DOCS}/submissions/abc",
                "fields": {
                    "name": {"stringValue": "Ann"},
                    "read": {"booleanValue": True},
                    "createdAt": {"timestampValue": "2024-01-01T00:00:00Z"},
                },
            }},
        ])
        store = make_store(handler)

        results = await store.fetch(query())

        assert len(results) == 1
        assert results[0].id == "abc"
        assert results[0].name == "Ann"
        assert results[0].read is True
        assert results[0].created_at == T0

        request = handler.last
        assert request.method == "POST"
        assert request.url.path == f"/v1/{DOCS}:runQuery"
        assert request.headers["Authorization"] == "Bearer token-123"
        assert json.loads(request.content)["structuredQuery"]["limit"] == 9

    @pytest.mark.asyncio
    async def test_no_authorization_header_without_token(self):
        handler = Recorder()
        store = make_store(handler, token=None)

        assert await store.fetch(query()) == []
        assert "Authorization" not in handler.last.headers

    @pytest.mark.asyncio
    async def test_update_fields_uses_mask_and_precondition(self):
        handler = Recorder(payload={})
        store = make_store(handler)

        await store.update_fields("abc", {"read": True})

        request = handler.last
        assert request.method == "PATCH"
        assert request.url.path == f"/v1/{DOCS}/submissions/abc"
        assert request.url.params.get_list("updateMask.fieldPaths") == ["read"]
        assert request.url.params["currentDocument.exists"] == "true"
        assert json.loads(request.content) == {"fields": {"read": {"booleanValue": True}}}

    @pytest.mark.asyncio
    async def test_delete(self):
        handler = Recorder(payload={})
        store = make_store(handler)

        await store.delete("abc")

        assert handler.last.method == "DELETE"
        assert handler.last.url.path == f"/v1/{DOCS}/submissions/abc"

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self):
        handler = Recorder(status_code=503, payload={"error": {"message": "unavailable"}})
        store = make_store(handler)

        with pytest.raises(StoreError) as exc_info:
            await store.fetch(query())

        assert exc_info.value.transient is True
        assert exc_info.value.status_code == 503
        assert "unavailable" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_throttling_is_transient(self):
        store = make_store(Recorder(status_code=429, text="slow down"))

        with pytest.raises(StoreError) as exc_info:
            await store.delete("abc")

        assert exc_info.value.transient is True
        assert "slow down" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_client_error_is_permanent(self):
        handler = Recorder(status_code=400, payload=[{"error": {"message": "The query requires an index."}}])
        store = make_store(handler)

        with pytest.raises(StoreError) as exc_info:
            await store.fetch(query())

        assert exc_info.value.transient is False
        assert "requires an index" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_missing_document_on_update(self):
        store = make_store(Recorder(status_code=404, payload={"error": {"message": "No document to update"}}))

        with pytest.raises(StoreError) as exc_info:
            await store.update_fields("gone", {"read": True})

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_transport_error_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        store = make_store(handler)

        with pytest.raises(StoreError) as exc_info:
            await store.fetch(query())

        assert exc_info.value.transient is True

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        store = make_store(Recorder(text="not json"))

        with pytest.raises(StoreError):
            await store.fetch(query())


class TestFromSettings:
    """Test cases for FirestoreStore.from_settings."""

    def test_requires_project_id(self):
        with pytest.raises(ValueError):
            FirestoreStore.from_settings(settings=Settings(firebase_project_id=None))

    def test_uses_configured_collection(self):
        settings = Settings(firebase_project_id="demo", submissions_collection="contact")
        store = FirestoreStore.from_settings(settings=settings)
        assert store.collection == "contact"
        assert store.documents_path == DOCS
