"""LLM module for Tanulas."""

from .question_maker import (
    QAPair,
    QuestionMaker,
    QuestionsResponse,
    QuestionGenerationError,
    ModelRefusalError,
    ResponseParseError,
    ProviderRequestError,
)

__all__ = [
    "QAPair",
    "QuestionMaker",
    "QuestionsResponse",
    "QuestionGenerationError",
    "ModelRefusalError",
    "ResponseParseError",
    "ProviderRequestError",
]
