"""
Tanulas - Question Generation

Turns study notes into question/answer pairs using an OpenAI chat model
constrained to a JSON schema.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Optional

import openai
from openai import OpenAI
from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE_PATH = Path(__file__).with_name("system_message.txt")


class QAPair(BaseModel):
    """One question with its answer. `unsure` is set when the notes look wrong."""

    model_config = ConfigDict(extra="forbid")

    question: str
    answer: str
    unsure: Optional[bool] = None


class QuestionsResponse(BaseModel):
    """Pairs in the order the model produced them."""

    pairs: list[QAPair]


# Accepts objects like:
#   {"pairs": [{"question": "Capital of France?", "answer": "Paris"},
#              {"question": "Capital of Germany?", "answer": "Sydney", "unsure": true}]}
QUESTIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "pairs": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "question": {"type": "string"},
                    "answer": {"type": "string"},
                    "unsure": {"type": "boolean"},
                },
                "required": ["question", "answer"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["pairs"],
}


class QuestionGenerationError(Exception):
    pass


class ModelRefusalError(QuestionGenerationError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ResponseParseError(QuestionGenerationError):
    pass


class ProviderRequestError(QuestionGenerationError):
    pass


def load_system_message(path: Path = SYSTEM_MESSAGE_PATH) -> str:
    """Read the system message sent ahead of every set of notes."""
    return path.read_text(encoding="utf-8").strip()


def parse_questions(content: Optional[str]) -> QuestionsResponse:
    """
    Parse raw model output into a QuestionsResponse.

    The provider is asked to follow QUESTIONS_SCHEMA but that isn't trusted:
    anything that isn't valid JSON of the right shape is rejected outright.

    Raises:
        ResponseParseError: If the content is empty, not JSON, or off-schema.
    """
    if not content:
        raise ResponseParseError("Model returned no content")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Model returned invalid JSON: {e}") from e
    try:
        return QuestionsResponse.model_validate(data)
    except ValidationError as e:
        raise ResponseParseError(f"Model output did not match schema: {e}") from e


class QuestionMaker:
    """LLM-powered revision question generator."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "gpt-4o-mini",
        system_message: Optional[str] = None,
    ):
        """
        Initialize the question maker.

        Args:
            api_key: OpenAI API key.
            base_url: Custom API base URL.
            model: Model name to use.
            system_message: Instruction text. Read from system_message.txt if not given.
        """
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.system_message = system_message or load_system_message()

        self._client: Optional[OpenAI] = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> OpenAI:
        """Get or create OpenAI client. Only the first caller builds it."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    # A failed call surfaces straight to the caller, no SDK retries.
                    kwargs = {"max_retries": 0}
                    if self.api_key:
                        kwargs["api_key"] = self.api_key
                    if self.base_url:
                        kwargs["base_url"] = self.base_url

                    self._client = OpenAI(**kwargs)
        return self._client

    def generate_questions(self, notes: str) -> QuestionsResponse:
        """
        Generate question/answer pairs from notes.

        Args:
            notes: The user's notes, sent verbatim as the user message.

        Returns:
            QuestionsResponse with the model's pairs.

        Raises:
            ModelRefusalError: If the model refused.
            ResponseParseError: If the output can't be parsed.
            ProviderRequestError: If the API could not be reached or errored.
        """
        client = self._get_client()

        try:
            completion = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.system_message},
                    {"role": "user", "content": notes},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "questions",
                        "schema": QUESTIONS_SCHEMA,
                    },
                },
            )
        except openai.APIError as e:
            raise ProviderRequestError(str(e)) from e

        if not completion.choices:
            raise ResponseParseError("Model returned no choices")

        message = completion.choices[0].message
        refusal = getattr(message, "refusal", None)
        if refusal:
            raise ModelRefusalError(refusal)

        return parse_questions(message.content)
