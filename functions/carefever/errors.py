"""
Error taxonomy for the API. Each error knows the HTTP status it maps to.
"""

from __future__ import annotations

from typing import Optional


class CareFeverError(Exception):
    """Base class for errors rendered as a `{success: false, ...}` envelope."""

    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error

    def as_dict(self) -> dict:
        payload = {"success": False, "message": self.message}
        if self.error:
            payload["error"] = self.error
        return payload


class InvalidRequestError(CareFeverError):
    status_code = 400


class WebhookVerificationError(CareFeverError):
    status_code = 400

    def __init__(self, error: Optional[str] = None):
        super().__init__("Webhook verification failed", error)


class NotFoundError(CareFeverError):
    status_code = 404


class StoreUnavailableError(CareFeverError):
    status_code = 500


class UpstreamServiceError(CareFeverError):
    """The voice assistant provider failed or is not configured."""

    status_code = 502

    def __init__(
        self, message: str, error: Optional[str] = None, status_code: int = 502
    ):
        super().__init__(message, error)
        self.status_code = status_code
