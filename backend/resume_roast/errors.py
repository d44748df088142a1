"""
Client-visible failure classes. Each one knows its HTTP status and JSON body;
the app installs a single exception handler that renders them.
"""
from typing import Any, Dict, List, Optional


class RoastAPIError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[List[str]] = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ClientInputInvalid(RoastAPIError):
    status_code = 400
    message = "Invalid input"


class RateLimited(RoastAPIError):
    status_code = 429
    message = "Rate limit exceeded"


class UpstreamUnavailable(RoastAPIError):
    status_code = 502
    message = "AI service error"


class UpstreamMalformed(RoastAPIError):
    status_code = 502
    message = "Invalid AI response format"
