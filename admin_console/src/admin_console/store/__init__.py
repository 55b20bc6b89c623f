"""Submission store interface and backends."""

from .base import DocumentStore, StoreError
from .firestore import FirestoreStore
from .memory import InMemoryDocumentStore

__all__ = ["DocumentStore", "FirestoreStore", "InMemoryDocumentStore", "StoreError"]
