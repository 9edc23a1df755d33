"""
User documents: identity sync from Clerk, personal info and SOS details.
"""

from __future__ import annotations

import logging

from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from carefever.errors import InvalidRequestError, NotFoundError
from carefever.store import (
    DocumentStore,
    WriteBatch,
    document_path,
    store_operation,
    to_json_safe,
)
from carefever.webhooks import USER_CREATED, USER_DELETED, USER_UPDATED, IdentityEvent
from shared.api import IdentityProfile, PersonalInfo, SosInfo, to_document
from shared.firebase_constants import (
    EMERGENCY_CONTACTS_COLLECTION,
    MAX_BATCH_WRITES,
    PAST_RECORDS_COLLECTION,
    USERS_COLLECTION,
)

logger = logging.getLogger(__name__)

USER_SUBCOLLECTIONS = (EMERGENCY_CONTACTS_COLLECTION, PAST_RECORDS_COLLECTION)


def require_user_id(user_id: str | None) -> str:
    if not user_id or not user_id.strip():
        raise InvalidRequestError("User ID is required")
    return user_id


def user_path(user_id: str) -> str:
    return document_path(USERS_COLLECTION, user_id)


def _identity_profile(data: dict) -> IdentityProfile:
    addresses = data.get("email_addresses") or []
    email = ""
    if addresses and isinstance(addresses[0], dict):
        email = addresses[0].get("email_address") or ""
    return IdentityProfile(
        clerk_user_id=data["id"],
        email=email,
        first_name=data.get("first_name") or "",
        last_name=data.get("last_name") or "",
        image_url=data.get("image_url") or "",
    )


class UserService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def apply_identity_event(self, event: IdentityEvent) -> bool:
        """
        Applies a verified Clerk event to the user's document.

        Create and update both merge so replayed or out-of-order deliveries
        converge on the same document; delete also removes the user's
        sub-collections. Returns False for event types that are ignored.
        """
        if event.type not in (USER_CREATED, USER_UPDATED, USER_DELETED):
            logger.info("Unhandled event type: %s", event.type)
            return False

        user_id = event.data.get("id")
        if not user_id:
            raise InvalidRequestError("Event payload has no user id")

        if event.type == USER_DELETED:
            with store_operation("Failed to delete user"):
                self._delete_user(user_id)
            logger.info("Deleted user %s", user_id)
            return True

        document = to_document(_identity_profile(event.data))
        if event.type == USER_CREATED:
            document["createdAt"] = event.data.get("created_at")
        else:
            document.pop("clerkUserId")
            document["updatedAt"] = event.data.get("updated_at")

        with store_operation("Failed to sync user"):
            self.store.set(user_path(user_id), document, merge=True)
        logger.info("Applied %s for user %s", event.type, user_id)
        return True

    def _delete_user(self, user_id: str) -> None:
        batch = WriteBatch()
        for collection in USER_SUBCOLLECTIONS:
            collection_path = document_path(user_path(user_id), collection)
            for doc in self.store.list(collection_path):
                batch.delete(document_path(collection_path, doc.id))
                if len(batch) >= MAX_BATCH_WRITES:
                    self.store.commit(batch)
                    batch = WriteBatch()
        batch.delete(user_path(user_id))
        self.store.commit(batch)

    def get_user(self, user_id: str | None) -> dict:
        user_id = require_user_id(user_id)
        with store_operation("Failed to fetch user data"):
            data = self.store.get(user_path(user_id))
        if data is None:
            raise NotFoundError("User not found")
        return to_json_safe(data)

    def update_personal_info(
        self, user_id: str | None, personal_info: PersonalInfo
    ) -> None:
        user_id = require_user_id(user_id)
        document = {
            key: ("" if value is None else value)
            for key, value in to_document(personal_info).items()
        }
        document["personalInfoCompleted"] = True
        document["updatedAt"] = SERVER_TIMESTAMP
        with store_operation("Failed to update personal information"):
            self.store.set(user_path(user_id), document, merge=True)

    def update_sos_info(self, user_id: str | None, sos_info: SosInfo) -> None:
        user_id = require_user_id(user_id)
        if not sos_info.name.strip():
            raise InvalidRequestError("Name is required")
        if not sos_info.last_location.strip():
            raise InvalidRequestError("Last location is required")
        if not 1 <= sos_info.age <= 150:
            raise InvalidRequestError("Please enter a valid age (1-150)")

        sos = SosInfo(
            name=sos_info.name.strip(),
            age=sos_info.age,
            last_location=sos_info.last_location.strip(),
        )
        document = {"sosInfo": to_document(sos), "updatedAt": SERVER_TIMESTAMP}
        with store_operation("Failed to save SOS information"):
            self.store.set(user_path(user_id), document, merge=True)
