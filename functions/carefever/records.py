"""
Past records: the append-only log of fever-check sessions.
"""

from __future__ import annotations

import logging
from typing import Optional

from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from carefever.errors import InvalidRequestError
from carefever.store import DocumentStore, document_path, store_operation, to_json_safe
from carefever.users import require_user_id, user_path
from shared.api import PastRecord, to_document
from shared.firebase_constants import PAST_RECORDS_COLLECTION

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "fever_severity",
    "possible_fever_causes",
    "fever_management_tips",
    "otc_medicines",
    "urgent_care_alert",
    "red_flags_to_watch_for",
)


def _is_missing(value) -> bool:
    return value is None or (isinstance(value, (str, list, dict)) and not value)


class PastRecordService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def _collection(self, user_id: str) -> str:
        return document_path(user_path(user_id), PAST_RECORDS_COLLECTION)

    def append_record(self, user_id: str | None, record: PastRecord) -> str:
        """Stores a new record stamped with the server time and returns its id."""
        if not (user_id and user_id.strip()) or any(
            _is_missing(getattr(record, name)) for name in REQUIRED_FIELDS
        ):
            raise InvalidRequestError("All fields are required")

        # Assessment values are opaque blobs: only the top-level keys are renamed.
        document = to_document(record, deep=False)
        document["createdAt"] = SERVER_TIMESTAMP
        if record.symptoms is None:
            document.pop("symptoms")

        with store_operation("Failed to save profile"):
            record_id = self.store.add(self._collection(user_id), document)
        logger.info("Saved past record %s for %s", record_id, user_id)
        return record_id

    def list_records(
        self, user_id: str | None, limit: Optional[int] = None
    ) -> list[dict]:
        """Most recent first; at most `limit` records when given."""
        user_id = require_user_id(user_id)
        if limit is not None and limit < 1:
            raise InvalidRequestError("limit must be a positive integer")

        with store_operation("Failed to fetch past records"):
            docs = self.store.list(
                self._collection(user_id),
                order_by="createdAt",
                descending=True,
                limit=limit,
            )
        logger.debug("Found %d past records for %s", len(docs), user_id)
        return [to_json_safe({"id": doc.id, **doc.data}) for doc in docs]
