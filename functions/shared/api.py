# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import asdict, dataclass
from typing import Any, Optional, Type, TypeVar

from dacite import Config, from_dict

from shared.json_utils import convert_keys

T = TypeVar("T")


@dataclass
class IdentityProfile:
    """User fields mirrored from the identity provider (Clerk)."""

    clerk_user_id: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    image_url: str = ""


@dataclass
class PersonalInfo:
    """Personal details merged into the user document."""

    phone: Any = ""
    age: Any = ""
    address: str = ""
    current_location: str = ""


@dataclass
class SosInfo:
    """Details shown to responders when the user raises an SOS."""

    name: str
    age: int
    last_location: str


@dataclass
class EmergencyContact:
    """Schema for a document in a user's emergency-contacts sub-collection."""

    name: str
    phone: str
    relation: str
    location: str = ""
    # Firestore timestamp (created with firestore_v1.SERVER_TIMESTAMP)
    created_at: Optional[Any] = None


@dataclass
class PastRecord:
    """
    Schema for a fever-check session stored in the past-records sub-collection.

    The assessment fields are whatever the assistant produced (string, list or
    object) and are stored untouched.
    """

    fever_severity: Any
    possible_fever_causes: Any
    fever_management_tips: Any
    otc_medicines: Any
    urgent_care_alert: Any
    red_flags_to_watch_for: Any
    symptoms: Any = None
    created_at: Optional[Any] = None


def to_document(item: Any, deep: bool = True) -> dict:
    """Dataclass -> camelCase Firestore document."""
    return convert_keys(asdict(item), "snake_to_camel", deep=deep)


def from_document(data_class: Type[T], data: dict, deep: bool = True) -> T:
    """camelCase Firestore document -> dataclass. Unknown keys are ignored."""
    return from_dict(
        data_class=data_class,
        data=convert_keys(data, "camel_to_snake", deep=deep),
        config=Config(check_types=False),
    )
