"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from fastapi import Depends

from carefever.config import get_settings
from carefever.contacts import EmergencyContactService
from carefever.records import PastRecordService
from carefever.store import (
    DocumentStore,
    FirestoreDocumentStore,
    InMemoryDocumentStore,
    create_firestore_client,
)
from carefever.users import UserService
from carefever.voice import (
    InMemoryVoiceAssistantClient,
    VapiClient,
    VoiceAssistantClient,
)
from carefever.webhooks import SvixWebhookVerifier, WebhookVerifier

_document_store: DocumentStore | None = None
_voice_client: VoiceAssistantClient | None = None


def get_document_store() -> DocumentStore:
    """
    Return a singleton document store; tests override this dependency.
    """
    global _document_store
    if _document_store:
        return _document_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _document_store = InMemoryDocumentStore()
    else:
        _document_store = FirestoreDocumentStore(
            create_firestore_client(
                settings.google_application_credentials,
                settings.firebase_project_id,
            )
        )
    return _document_store


def get_webhook_verifier() -> WebhookVerifier:
    return SvixWebhookVerifier(get_settings().clerk_webhook_secret)


def get_voice_client() -> VoiceAssistantClient:
    global _voice_client
    if _voice_client:
        return _voice_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _voice_client = InMemoryVoiceAssistantClient()
    else:
        _voice_client = VapiClient(
            api_key=settings.vapi_api_key,
            assistant_id=settings.vapi_assistant_id,
            base_url=settings.vapi_base_url,
        )
    return _voice_client


def get_user_service(
    store: DocumentStore = Depends(get_document_store),
) -> UserService:
    return UserService(store)


def get_contact_service(
    store: DocumentStore = Depends(get_document_store),
) -> EmergencyContactService:
    return EmergencyContactService(store)


def get_record_service(
    store: DocumentStore = Depends(get_document_store),
) -> PastRecordService:
    return PastRecordService(store)
