"""
Emergency contacts: a replace-all set of one to four people per user.
"""

from __future__ import annotations

import logging
import re

from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from carefever.errors import InvalidRequestError
from carefever.store import (
    DocumentStore,
    WriteBatch,
    document_path,
    store_operation,
    to_json_safe,
)
from carefever.users import require_user_id, user_path
from shared.api import EmergencyContact, to_document
from shared.firebase_constants import EMERGENCY_CONTACTS_COLLECTION

logger = logging.getLogger(__name__)

MIN_CONTACTS = 1
MAX_CONTACTS = 4
PHONE_PATTERN = re.compile(r"^[\d\s\-\+\(\)]+$")


def _validate_contact(index: int, contact: EmergencyContact) -> EmergencyContact:
    number = index + 1
    name = (contact.name or "").strip()
    phone = (contact.phone or "").strip()
    relation = (contact.relation or "").strip()
    if not name:
        raise InvalidRequestError(f"Contact {number}: Name is required")
    if not phone:
        raise InvalidRequestError(f"Contact {number}: Phone number is required")
    if not PHONE_PATTERN.match(phone):
        raise InvalidRequestError(f"Contact {number}: Invalid phone number format")
    if not relation:
        raise InvalidRequestError(f"Contact {number}: Relation is required")
    return EmergencyContact(
        name=name,
        phone=phone,
        relation=relation,
        location=(contact.location or "").strip(),
    )


class EmergencyContactService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def _collection(self, user_id: str) -> str:
        return document_path(user_path(user_id), EMERGENCY_CONTACTS_COLLECTION)

    def save_contacts(
        self, user_id: str | None, contacts: list[EmergencyContact] | None
    ) -> int:
        """
        Replaces the user's whole contact set in one batch.

        Every contact is validated before anything is written, so a rejected
        request leaves the stored set untouched.
        """
        user_id = require_user_id(user_id)
        if not contacts:
            raise InvalidRequestError("Contacts array is required")
        if not MIN_CONTACTS <= len(contacts) <= MAX_CONTACTS:
            raise InvalidRequestError(
                f"Between {MIN_CONTACTS} and {MAX_CONTACTS} "
                "emergency contacts are allowed"
            )
        validated = [_validate_contact(i, c) for i, c in enumerate(contacts)]

        collection_path = self._collection(user_id)
        with store_operation("Failed to save emergency contacts"):
            batch = WriteBatch()
            for existing in self.store.list(collection_path):
                batch.delete(document_path(collection_path, existing.id))
            for contact in validated:
                document = to_document(contact)
                # Sentinels must not pass through asdict, which deep-copies values.
                document["createdAt"] = SERVER_TIMESTAMP
                batch.set(self.store.new_document_path(collection_path), document)
            self.store.commit(batch)

        logger.info("Saved %d emergency contacts for %s", len(validated), user_id)
        return len(validated)

    def get_contacts(self, user_id: str | None) -> list[dict]:
        user_id = require_user_id(user_id)
        with store_operation("Failed to fetch emergency contacts"):
            docs = self.store.list(self._collection(user_id))
        return [to_json_safe({"id": doc.id, **doc.data}) for doc in docs]
