"""
Pydantic schemas for the CareFever API. Field names follow the camelCase
payloads the web client sends.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel


class PersonalInfoPayload(BaseModel):
    phone: Optional[Union[str, int]] = None
    age: Optional[Union[str, int]] = None
    address: Optional[str] = None
    currentLocation: Optional[str] = None


class PersonalInfoRequest(BaseModel):
    userId: Optional[str] = None
    personalInfo: Optional[PersonalInfoPayload] = None


class SosInfoPayload(BaseModel):
    name: str
    age: int
    lastLocation: str


class SosInfoRequest(BaseModel):
    userId: Optional[str] = None
    sosInfo: SosInfoPayload


class EmergencyContactPayload(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    relation: Optional[str] = None
    location: Optional[str] = None


class EmergencyContactsRequest(BaseModel):
    userId: Optional[str] = None
    contacts: Optional[list[EmergencyContactPayload]] = None


class PastRecordRequest(BaseModel):
    """A finished fever check. Assessment values may be text, lists or objects."""

    userId: Optional[str] = None
    feverSeverity: Any = None
    possibleFeverCauses: Any = None
    feverManagementTips: Any = None
    otcMedicines: Any = None
    urgentCareAlert: Any = None
    redFlagsToWatchFor: Any = None
    symptoms: Any = None


class StartCallRequest(BaseModel):
    assistantId: Optional[str] = None
    metadata: Optional[dict] = None


class MessageResponse(BaseModel):
    success: bool
    message: str


class DataResponse(BaseModel):
    success: bool
    data: Any


class SaveRecordResponse(BaseModel):
    success: bool
    message: str
    recordId: str
