"""
HTTP routes for the CareFever API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request

from carefever.contacts import EmergencyContactService
from carefever.dependencies import (
    get_contact_service,
    get_record_service,
    get_user_service,
    get_voice_client,
    get_webhook_verifier,
)
from carefever.errors import WebhookVerificationError
from carefever.records import PastRecordService
from carefever.schemas import (
    DataResponse,
    EmergencyContactsRequest,
    MessageResponse,
    PastRecordRequest,
    PersonalInfoRequest,
    SaveRecordResponse,
    SosInfoRequest,
    StartCallRequest,
)
from carefever.users import UserService
from carefever.voice import VoiceAssistantClient
from carefever.webhooks import WebhookVerifier
from shared.api import (
    EmergencyContact,
    PastRecord,
    PersonalInfo,
    SosInfo,
    from_document,
)

logger = logging.getLogger(__name__)

user_router = APIRouter(prefix="/api/user", tags=["users"])
ai_router = APIRouter(prefix="/ai", tags=["voice assistant"])
router = APIRouter()


@user_router.post("/clerk-user-webhook", response_model=MessageResponse)
async def clerk_user_webhook(
    request: Request,
    verifier: WebhookVerifier = Depends(get_webhook_verifier),
    users: UserService = Depends(get_user_service),
):
    """
    Syncs the user document from a Clerk event. The signature is checked
    against the raw body before any field of the payload is used.
    """
    payload = await request.body()
    try:
        event = verifier.verify(payload, request.headers)
    except WebhookVerificationError as e:
        logger.warning("Webhook verification failed: %s", e.error)
        raise

    applied = users.apply_identity_event(event)
    message = "Webhook processed" if applied else f"Ignored event type {event.type}"
    return MessageResponse(success=True, message=message)


@user_router.post("/personal-info", response_model=MessageResponse)
@user_router.post("/save-profile", response_model=MessageResponse)
def update_personal_info(
    payload: PersonalInfoRequest, users: UserService = Depends(get_user_service)
):
    personal_info = from_document(
        PersonalInfo,
        payload.personalInfo.model_dump(exclude_none=True)
        if payload.personalInfo
        else {},
    )
    users.update_personal_info(payload.userId, personal_info)
    return MessageResponse(
        success=True, message="Personal information updated successfully"
    )


@user_router.post("/sos-info", response_model=MessageResponse)
def update_sos_info(
    payload: SosInfoRequest, users: UserService = Depends(get_user_service)
):
    users.update_sos_info(
        payload.userId, from_document(SosInfo, payload.sosInfo.model_dump())
    )
    return MessageResponse(success=True, message="SOS information saved successfully")


@user_router.post("/emergency-contacts", response_model=MessageResponse)
def save_emergency_contacts(
    payload: EmergencyContactsRequest,
    contacts: EmergencyContactService = Depends(get_contact_service),
):
    submitted = (
        [from_document(EmergencyContact, c.model_dump()) for c in payload.contacts]
        if payload.contacts is not None
        else None
    )
    contacts.save_contacts(payload.userId, submitted)
    return MessageResponse(
        success=True, message="Emergency contacts saved successfully"
    )


@router.post("/save-profile", response_model=SaveRecordResponse)
def save_past_record(
    payload: PastRecordRequest,
    records: PastRecordService = Depends(get_record_service),
):
    """Appends a fever-check session to the user's past records."""
    record = from_document(
        PastRecord, payload.model_dump(exclude={"userId"}), deep=False
    )
    record_id = records.append_record(payload.userId, record)
    return SaveRecordResponse(
        success=True, message="Profile saved successfully", recordId=record_id
    )


@user_router.get("/{user_id}/emergency-contacts", response_model=DataResponse)
def get_emergency_contacts(
    user_id: str, contacts: EmergencyContactService = Depends(get_contact_service)
):
    return DataResponse(success=True, data=contacts.get_contacts(user_id))


@user_router.get("/{user_id}/past-records", response_model=DataResponse)
def get_past_records(
    user_id: str,
    limit: int | None = Query(None, ge=1),
    records: PastRecordService = Depends(get_record_service),
):
    return DataResponse(success=True, data=records.list_records(user_id, limit))


@user_router.get("/{user_id}", response_model=DataResponse)
def get_user(user_id: str, users: UserService = Depends(get_user_service)):
    return DataResponse(success=True, data=users.get_user(user_id))


@ai_router.post("/call", response_model=DataResponse)
def start_voice_call(
    payload: StartCallRequest | None = None,
    voice: VoiceAssistantClient = Depends(get_voice_client),
):
    """Starts a web call with the voice assistant for the browser to join."""
    payload = payload or StartCallRequest()
    call = voice.start_web_call(payload.assistantId, payload.metadata)
    return DataResponse(success=True, data=call)


@router.get("/health", response_model=MessageResponse)
def health():
    return MessageResponse(success=True, message="ok")
