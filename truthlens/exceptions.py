"""
Error taxonomy for TruthLens.

Every error carries the HTTP status the API answers with. Upstream errors
keep the status and body returned by the external service separately.
"""

from typing import Optional


class TruthLensError(Exception):
    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(TruthLensError):
    status_code = 400
    error = "Invalid request"


class NotFoundError(TruthLensError):
    status_code = 404
    error = "Not found"


class UnknownError(TruthLensError):
    status_code = 500
    error = "Unknown error"


class UpstreamError(TruthLensError):
    """A call to an external API failed."""

    status_code = 500
    error = "Upstream service error"

    def __init__(
        self,
        message: Optional[str] = None,
        upstream_status: Optional[int] = None,
        body: str = "",
    ):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body


class UpstreamAuthError(UpstreamError):
    error = "Upstream authentication failed"


class UpstreamRateLimitError(UpstreamError):
    error = "Upstream rate limit exceeded"


class UpstreamParseError(UpstreamError):
    error = "Unparsable response from upstream model"


class UpstreamEmptyResponseError(UpstreamError):
    error = "No content received from upstream model"


class UpstreamTimeoutError(UpstreamError):
    error = "Upstream request timed out"
