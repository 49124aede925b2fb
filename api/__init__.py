"""
Tanulas - API Module

Token issuance, request models and middleware for the question server.
"""

from .auth import issue_token, verify_token, require_token
from .models import TokenRequest, NotesRequest, QAPair, QuestionsResponse

__all__ = [
    "issue_token",
    "verify_token",
    "require_token",
    "TokenRequest",
    "NotesRequest",
    "QAPair",
    "QuestionsResponse",
]
