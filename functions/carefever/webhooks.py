"""
Verification of signed identity-provider (Clerk) webhook deliveries.

Clerk signs its webhooks with svix: every delivery carries `svix-id`,
`svix-timestamp` and `svix-signature` headers, and nothing in the body may be
trusted until those check out against the endpoint's shared secret.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol

from svix.webhooks import Webhook, WebhookVerificationError as SvixVerificationError

from carefever.errors import WebhookVerificationError

logger = logging.getLogger(__name__)

USER_CREATED = "user.created"
USER_UPDATED = "user.updated"
USER_DELETED = "user.deleted"

SIGNATURE_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


@dataclass
class IdentityEvent:
    """A verified identity-provider event."""

    type: str
    data: dict = field(default_factory=dict)


class WebhookVerifier(Protocol):
    def verify(self, payload: bytes, headers: Mapping[str, str]) -> IdentityEvent:
        """Returns the verified event or raises `WebhookVerificationError`."""
        ...


class SvixWebhookVerifier:
    def __init__(self, secret: Optional[str]):
        self.secret = secret

    def verify(self, payload: bytes, headers: Mapping[str, str]) -> IdentityEvent:
        if not self.secret:
            raise WebhookVerificationError("Webhook secret is not configured")

        signature_headers = {
            name: headers.get(name) for name in SIGNATURE_HEADERS if headers.get(name)
        }
        missing = [name for name in SIGNATURE_HEADERS if name not in signature_headers]
        if missing:
            raise WebhookVerificationError(
                f"Missing signature headers: {', '.join(missing)}"
            )

        try:
            Webhook(self.secret).verify(payload, signature_headers)
        except SvixVerificationError as e:
            raise WebhookVerificationError(str(e)) from e
        except ValueError as e:
            # Malformed secret.
            raise WebhookVerificationError(str(e)) from e

        try:
            event = json.loads(payload)
        except ValueError as e:
            raise WebhookVerificationError(f"Event payload is not JSON: {e}") from e

        if not isinstance(event, dict) or not isinstance(event.get("type"), str):
            raise WebhookVerificationError("Event payload has no type")
        data = event.get("data")
        return IdentityEvent(
            type=event["type"], data=data if isinstance(data, dict) else {}
        )
