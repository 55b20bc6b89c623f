"""Shared fixtures for the admin console test-suite."""

from datetime import datetime, timedelta, timezone

import pytest

from admin_console.store import InMemoryDocumentStore

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_documents(count, start=NOW, step=timedelta(minutes=1)):
    """``count`` submissions; doc-01 is the newest."""
    return [
        {
            "id": f"doc-{i:02d}",
            "name": f"Person {i:02d}",
            "email": f"person{i:02d}@example.com",
            "message": f"Message number {i}",
            "createdAt": start - step * (i - 1),
            "read": False,
        }
        for i in range(1, count + 1)
    ]


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def store_factory():
    def factory(count):
        return InMemoryDocumentStore(make_documents(count))
    return factory


@pytest.fixture
def documents_factory():
    return make_documents
