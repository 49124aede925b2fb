"""
API Request/Response Models

Pydantic models for input validation and response serialization.
"""

from typing import Optional

from pydantic import BaseModel, Field

from src.llm.question_maker import QAPair, QuestionsResponse


class TokenRequest(BaseModel):
    """Request for a new token."""

    # Both optional so the secret can be checked before the email.
    secret: Optional[str] = Field(default=None, description="Shared workshop/user secret")
    email: Optional[str] = Field(default=None, description="Email address to embed in the token")


class NotesRequest(BaseModel):
    """Request to generate questions from notes."""

    # The upper bound is checked by the endpoint so it can answer "Notes too long".
    notes: str = Field(..., description="Free-text study notes", min_length=1)


class HealthResponse(BaseModel):
    status: str
    timestamp: float
    provider_configured: bool


__all__ = [
    "TokenRequest",
    "NotesRequest",
    "HealthResponse",
    "QAPair",
    "QuestionsResponse",
]
