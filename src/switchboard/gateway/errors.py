"""Shared error definitions for the translation gateway.

Every failure a single request can hit is a GatewayError subclass carrying
the HTTP status and error type the handler reports back to the caller.
"""

from __future__ import annotations

# Error type mapping from HTTP status to reported error type
ERROR_TYPE_MAP = {
    400: "invalid_request_error",
    404: "not_found_error",
    405: "invalid_request_error",
    413: "request_too_large",
    500: "api_error",
    502: "api_error",
    503: "api_error",
    504: "api_error",
}


class GatewayError(Exception):
    """Base class for per-request gateway failures."""

    status: int = 500

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status

    @property
    def error_type(self) -> str:
        return ERROR_TYPE_MAP.get(self.status, "api_error")

    def to_dict(self) -> dict[str, object]:
        """Error body returned to the caller."""
        return {
            "type": "error",
            "error": {
                "type": self.error_type,
                "message": self.message,
            },
        }


class InvalidRequestBody(GatewayError):
    """Inbound body is not JSON or not shaped as a source payload."""

    status = 400


class MalformedContent(GatewayError):
    """A content sequence is empty where a first element is required."""

    status = 400


class SanitationDecodeError(GatewayError):
    """Sanitized payload text could not be decoded back into JSON."""

    status = 500


class BackendError(GatewayError):
    """Forwarding to the backend failed at the transport level."""

    status = 502


class BackendUnreachable(BackendError):
    """The backend could not be connected to."""

    status = 502
