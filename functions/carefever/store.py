"""
Document store abstraction for Firestore and an in-memory test implementation.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, Literal, Optional, Protocol

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from carefever.errors import NotFoundError, StoreUnavailableError

logger = logging.getLogger(__name__)


def document_path(*parts: str) -> str:
    """Joins collection/document ids into a Firestore path."""
    return "/".join(parts)


@dataclass
class StoredDocument:
    id: str
    data: dict


@dataclass
class BatchWrite:
    op: Literal["set", "delete"]
    path: str
    data: Optional[dict] = None
    merge: bool = False


@dataclass
class WriteBatch:
    """A group of writes committed atomically by `DocumentStore.commit`."""

    writes: list[BatchWrite] = field(default_factory=list)

    def set(self, path: str, data: dict, merge: bool = False) -> "WriteBatch":
        self.writes.append(BatchWrite(op="set", path=path, data=data, merge=merge))
        return self

    def delete(self, path: str) -> "WriteBatch":
        self.writes.append(BatchWrite(op="delete", path=path))
        return self

    def __len__(self) -> int:
        return len(self.writes)


class DocumentStore(Protocol):
    """Operations the services need from the document database."""

    def get(self, path: str) -> Optional[dict]:
        ...

    def set(self, path: str, data: dict, merge: bool = False) -> None:
        ...

    def update(self, path: str, data: dict) -> None:
        ...

    def delete(self, path: str) -> None:
        ...

    def add(self, collection_path: str, data: dict) -> str:
        ...

    def list(
        self,
        collection_path: str,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[StoredDocument]:
        ...

    def new_document_path(self, collection_path: str) -> str:
        ...

    def commit(self, batch: WriteBatch) -> None:
        ...


@contextmanager
def store_operation(message: str) -> Iterator[None]:
    """
    Re-labels a store failure with the operation the caller was attempting,
    keeping the underlying error text.
    """
    try:
        yield
    except StoreUnavailableError as e:
        logger.error("%s: %s", message, e.error)
        raise StoreUnavailableError(message, e.error) from e


def to_json_safe(value: Any) -> Any:
    """Serializes stored timestamps to ISO-8601 text, recursively."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return (
            value.astimezone(timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
    if isinstance(value, dict):
        return {k: to_json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_json_safe(v) for v in value]
    return value


def _deep_merge(target: dict, updates: dict) -> None:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.documents: Dict[str, dict] = {}
        self._lock = threading.RLock()
        self._last_timestamp: Optional[datetime] = None

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.documents.clear()
            self._last_timestamp = None

    def _now(self) -> datetime:
        # Server timestamps are strictly increasing so ordering is deterministic.
        now = datetime.now(timezone.utc)
        if self._last_timestamp and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _resolve(self, data: dict) -> dict:
        resolved = {}
        for key, value in data.items():
            if value is SERVER_TIMESTAMP:
                resolved[key] = self._now()
            elif isinstance(value, dict):
                resolved[key] = self._resolve(value)
            else:
                resolved[key] = copy.deepcopy(value)
        return resolved

    def _children(self, collection_path: str) -> list[StoredDocument]:
        prefix = collection_path.rstrip("/") + "/"
        children = []
        for path, data in self.documents.items():
            doc_id = path[len(prefix):]
            if path.startswith(prefix) and doc_id and "/" not in doc_id:
                children.append(StoredDocument(id=doc_id, data=copy.deepcopy(data)))
        return children

    def get(self, path: str) -> Optional[dict]:
        with self._lock:
            data = self.documents.get(path)
            return copy.deepcopy(data) if data is not None else None

    def set(self, path: str, data: dict, merge: bool = False) -> None:
        with self._lock:
            self._apply_set(path, data, merge)

    def _apply_set(self, path: str, data: dict, merge: bool) -> None:
        resolved = self._resolve(data)
        existing = self.documents.get(path)
        if merge and existing is not None:
            _deep_merge(existing, resolved)
        else:
            self.documents[path] = resolved

    def update(self, path: str, data: dict) -> None:
        with self._lock:
            existing = self.documents.get(path)
            if existing is None:
                raise NotFoundError("Document not found", path)
            existing.update(self._resolve(data))

    def delete(self, path: str) -> None:
        with self._lock:
            self.documents.pop(path, None)

    def add(self, collection_path: str, data: dict) -> str:
        with self._lock:
            path = self.new_document_path(collection_path)
            self._apply_set(path, data, merge=False)
            return path.rsplit("/", 1)[-1]

    def list(
        self,
        collection_path: str,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[StoredDocument]:
        with self._lock:
            docs = self._children(collection_path)
        if order_by:
            # Like Firestore, ordering excludes documents missing the field.
            docs = [doc for doc in docs if order_by in doc.data]
            docs.sort(key=lambda doc: doc.data[order_by], reverse=descending)
        if limit is not None:
            docs = docs[:limit]
        return docs

    def new_document_path(self, collection_path: str) -> str:
        return document_path(collection_path.rstrip("/"), uuid.uuid4().hex[:20])

    def commit(self, batch: WriteBatch) -> None:
        with self._lock:
            for write in batch.writes:
                if write.op == "delete":
                    self.documents.pop(write.path, None)
                else:
                    self._apply_set(write.path, write.data or {}, write.merge)


@contextmanager
def _firestore_errors(operation: str, path: str) -> Iterator[None]:
    try:
        yield
    except google_exceptions.NotFound as e:
        raise NotFoundError("Document not found", f"{path}: {e}") from e
    except google_exceptions.GoogleAPIError as e:
        logger.exception("Firestore %s failed for %s", operation, path)
        raise StoreUnavailableError(f"Firestore {operation} failed", str(e)) from e


def create_firestore_client(
    credentials_path: Optional[str] = None, project_id: Optional[str] = None
):
    """Initializes the default firebase app once and returns its Firestore client."""
    try:
        app = firebase_admin.get_app()
    except ValueError:
        cred = (
            credentials.Certificate(credentials_path)
            if credentials_path
            else credentials.ApplicationDefault()
        )
        options = {"projectId": project_id} if project_id else None
        app = firebase_admin.initialize_app(cred, options)
    return firestore.client(app)


class FirestoreDocumentStore:
    """
    Firestore-backed implementation. Paths are slash-separated, e.g.
    `users/{id}/emergency-contacts/{contactId}`.
    """

    def __init__(self, client):
        self.client = client

    def get(self, path: str) -> Optional[dict]:
        with _firestore_errors("get", path):
            snapshot = self.client.document(path).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    def set(self, path: str, data: dict, merge: bool = False) -> None:
        with _firestore_errors("set", path):
            self.client.document(path).set(data, merge=merge)

    def update(self, path: str, data: dict) -> None:
        with _firestore_errors("update", path):
            self.client.document(path).update(data)

    def delete(self, path: str) -> None:
        with _firestore_errors("delete", path):
            self.client.document(path).delete()

    def add(self, collection_path: str, data: dict) -> str:
        with _firestore_errors("add", collection_path):
            _, doc_ref = self.client.collection(collection_path).add(data)
        return doc_ref.id

    def list(
        self,
        collection_path: str,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[StoredDocument]:
        query = self.client.collection(collection_path)
        if order_by:
            direction = (
                firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            )
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        with _firestore_errors("query", collection_path):
            return [
                StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {})
                for snapshot in query.stream()
            ]

    def new_document_path(self, collection_path: str) -> str:
        doc_ref = self.client.collection(collection_path).document()
        return document_path(collection_path.rstrip("/"), doc_ref.id)

    def commit(self, batch: WriteBatch) -> None:
        firestore_batch = self.client.batch()
        for write in batch.writes:
            doc_ref = self.client.document(write.path)
            if write.op == "delete":
                firestore_batch.delete(doc_ref)
            else:
                firestore_batch.set(doc_ref, write.data or {}, merge=write.merge)
        with _firestore_errors("batch commit", f"{len(batch)} writes"):
            firestore_batch.commit()
