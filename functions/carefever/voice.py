"""
Voice assistant client for the Vapi hosted voice AI and an in-memory test double.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import requests

from carefever.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds


class VoiceAssistantClient(Protocol):
    """Starts voice sessions with the hosted assistant."""

    def start_web_call(
        self, assistant_id: Optional[str] = None, metadata: Optional[dict] = None
    ) -> dict:
        ...


@dataclass
class InMemoryVoiceAssistantClient:
    """Test double recording the calls it was asked to start."""

    assistant_id: str = "test-assistant"
    calls: list[dict] = field(default_factory=list)

    def start_web_call(
        self, assistant_id: Optional[str] = None, metadata: Optional[dict] = None
    ) -> dict:
        call = {
            "id": f"call-{len(self.calls) + 1}",
            "assistantId": assistant_id or self.assistant_id,
            "metadata": metadata or {},
            "webCallUrl": f"https://example.test/calls/{len(self.calls) + 1}",
        }
        self.calls.append(call)
        return call


@dataclass
class VapiClient:
    """
    Thin wrapper over the Vapi REST API. The browser joins the returned
    `webCallUrl`; the private API key never leaves the server.
    """

    api_key: Optional[str]
    assistant_id: Optional[str]
    base_url: str = "https://api.vapi.ai"

    def start_web_call(
        self, assistant_id: Optional[str] = None, metadata: Optional[dict] = None
    ) -> dict:
        assistant_id = assistant_id or self.assistant_id
        if not self.api_key or not assistant_id:
            raise UpstreamServiceError(
                "Voice assistant is not configured", status_code=503
            )

        payload = {"assistantId": assistant_id}
        if metadata:
            payload["metadata"] = metadata
        try:
            response = requests.post(
                f"{self.base_url.rstrip('/')}/call/web",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error("Vapi call failed: %s", e)
            raise UpstreamServiceError("Failed to start voice session", str(e)) from e
