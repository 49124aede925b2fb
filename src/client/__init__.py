"""Client module for Tanulas."""

from .questions_client import QuestionsClient, QuestionsClientError

__all__ = ["QuestionsClient", "QuestionsClientError"]
