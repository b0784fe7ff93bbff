"""
Error taxonomy for the render service.

Every failure the service reports carries a kind (the classification string),
the HTTP status it maps to, and a human-readable message.
"""

from typing import Optional


class RenderServiceError(Exception):
    """Base class for all classified render service errors."""

    kind = "RenderServiceError"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict:
        """Build the JSON error body for this error."""
        return {"error": self.message}


class Unauthorized(RenderServiceError):
    """Shared secret missing, wrong, or not configured on the server."""

    kind = "Unauthorized"
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ValidationError(RenderServiceError):
    """Render request rejected before reaching the engine."""

    kind = "ValidationError"
    status_code = 400

    def __init__(self, message: str = "HTML is required", detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail

    def to_response(self) -> dict:
        body = {"error": self.message}
        if self.detail:
            body["message"] = self.detail
        return body


class EngineStartFailure(RenderServiceError):
    """The Chromium process could not be launched."""

    kind = "EngineStartFailure"


class RenderTimeout(RenderServiceError):
    """The render did not finish within the configured ceiling."""

    kind = "RenderTimeout"


class RenderFailure(RenderServiceError):
    """Any other engine or page level error during load or capture."""

    kind = "RenderFailure"


class CleanupFailure(RenderServiceError):
    """Closing a context, page or the engine failed. Logged, never surfaced."""

    kind = "CleanupFailure"
