"""
API Errors

Every failure on the API path is raised as an APIError subclass and turned
into a plain-text response with the matching status code by the handlers
registered in api_server.
"""

from typing import Optional

from fastapi import status


class APIError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthorized(APIError):
    """Bad shared secret, or a missing, invalid or expired token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class InvalidRequest(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class PayloadTooLarge(APIError):
    # 400 rather than 413, clients match on the body text.
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Notes too long"


class ServiceUnavailable(APIError):
    message = "No OpenAI API key"


class GenerationRefused(APIError):
    """The model declined to generate questions."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Model refused to generate questions: {reason}")


class UpstreamParseError(APIError):
    message = "Failed to parse model response"


class UpstreamRequestError(APIError):
    message = "Failed to contact model provider"
