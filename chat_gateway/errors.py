"""Error taxonomy shared by the gateway and the tool service."""
from __future__ import annotations


class GatewayError(RuntimeError):
    """Base class for failures reported to the caller as ``{error, message}``."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "message": self.message}


class InvalidRequestError(GatewayError):
    """Raised when the inbound body is missing required fields."""

    status_code = 400
    error = "Invalid request"


class ConfigurationError(GatewayError):
    """Raised when a required credential was not available at startup."""

    status_code = 500
    error = "Configuration error"


class UpstreamError(GatewayError):
    """Non-2xx answer from the completion provider; keeps the provider status."""

    error = "Upstream API error"

    _MESSAGES = {
        429: "Rate limit exceeded at the completion provider. Please wait a moment and try again.",
        401: "Authentication with the completion provider failed. Check the configured API key.",
        503: "The completion provider is temporarily unavailable. Please try again later.",
    }

    @classmethod
    def from_status(cls, status_code: int, detail: str | None) -> UpstreamError:
        if status_code in cls._MESSAGES:
            message = cls._MESSAGES[status_code]
        elif status_code == 400:
            message = f"The completion provider rejected the request: {detail or 'bad request'}"
        else:
            message = detail or f"Completion provider error ({status_code})"
        return cls(message, status_code=status_code)


class ToolInvocationError(RuntimeError):
    """Tool service call failed; always absorbed into a ``Tool error:`` string."""


def describe_unhandled(exc: BaseException) -> str:
    """Turn an unexpected exception into the message shown to the caller."""
    raw = str(exc) or exc.__class__.__name__
    lowered = raw.lower()
    if "timeout" in lowered or "timed out" in lowered:
        return f"The request timed out while contacting a backend service: {raw}"
    if any(marker in lowered for marker in ("econnrefused", "connect", "network")):
        return f"A network error occurred while contacting a backend service: {raw}"
    return raw
