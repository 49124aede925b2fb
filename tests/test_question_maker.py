"""Tests for QuestionMaker and response parsing."""

import time
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace
from unittest.mock import patch

import httpx
import openai
import pytest

from src.llm.question_maker import (
    QUESTIONS_SCHEMA,
    ModelRefusalError,
    ProviderRequestError,
    QuestionMaker,
    ResponseParseError,
    load_system_message,
    parse_questions,
)

from tests.conftest import make_completion


class TestParseQuestions:
    """Test cases for parse_questions."""

    def test_unsure_defaults_to_absent(self):
        result = parse_questions('{"pairs":[{"question":"Q","answer":"A"}]}')

        assert result.pairs[0].question == "Q"
        assert result.pairs[0].unsure is None
        assert result.model_dump(exclude_none=True) == {"pairs": [{"question": "Q", "answer": "A"}]}

    def test_order_preserved(self):
        result = parse_questions(
            '{"pairs":[{"question":"1","answer":"a"},{"question":"2","answer":"b"},{"question":"3","answer":"c"}]}'
        )

        assert [p.question for p in result.pairs] == ["1", "2", "3"]

    @pytest.mark.parametrize(
        "content",
        [
            None,
            "",
            "not json",
            "[]",
            '{"questions": []}',
            '{"pairs":[{"answer":"A"}]}',
            '{"pairs":[{"question":"Q","answer":"A","source":"notes"}]}',
            '{"pairs":[{"question":"Q","answer":"A","unsure":"maybe"}]}',
        ],
    )
    def test_rejects_bad_content(self, content):
        with pytest.raises(ResponseParseError):
            parse_questions(content)


class TestQuestionMaker:
    """Test cases for QuestionMaker.generate_questions."""

    def test_request_shape(self, question_maker, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = make_completion(content='{"pairs":[]}')

        question_maker.generate_questions("Photosynthesis uses light")

        kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == [
            {"role": "system", "content": "Write revision questions."},
            {"role": "user", "content": "Photosynthesis uses light"},
        ]
        assert kwargs["response_format"]["type"] == "json_schema"
        assert kwargs["response_format"]["json_schema"]["name"] == "questions"
        assert kwargs["response_format"]["json_schema"]["schema"] is QUESTIONS_SCHEMA

    def test_schema_contract(self):
        pair = QUESTIONS_SCHEMA["properties"]["pairs"]["items"]

        assert pair["required"] == ["question", "answer"]
        assert pair["additionalProperties"] is False
        assert pair["properties"]["unsure"] == {"type": "boolean"}

    def test_refusal_raises(self, question_maker, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = make_completion(refusal="Not allowed")

        with pytest.raises(ModelRefusalError) as exc_info:
            question_maker.generate_questions("notes")

        assert exc_info.value.reason == "Not allowed"

    def test_api_error_wrapped(self, question_maker, mock_openai_client):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        mock_openai_client.chat.completions.create.side_effect = openai.APITimeoutError(request=request)

        with pytest.raises(ProviderRequestError):
            question_maker.generate_questions("notes")

    def test_client_created_once_without_retries(self):
        maker = QuestionMaker(api_key="sk-test", base_url="http://localhost:11434/v1", system_message="x")

        with patch("src.llm.question_maker.OpenAI") as mock_openai:
            first = maker._get_client()
            second = maker._get_client()

        assert first is second
        mock_openai.assert_called_once_with(
            max_retries=0, api_key="sk-test", base_url="http://localhost:11434/v1"
        )

    def test_default_system_message_loaded_from_file(self):
        maker = QuestionMaker(api_key="sk-test")

        assert maker.system_message == load_system_message()
        assert "unsure" in maker.system_message

    def test_client_built_once_across_threads(self):
        maker = QuestionMaker(api_key="sk-test", system_message="x")

        def slow_client(**kwargs):
            time.sleep(0.05)
            return object()

        with patch("src.llm.question_maker.OpenAI", side_effect=slow_client) as mock_openai:
            with ThreadPoolExecutor(max_workers=4) as pool:
                clients = list(pool.map(lambda _: maker._get_client(), range(4)))

        assert mock_openai.call_count == 1
        assert all(client is clients[0] for client in clients)

    def test_no_choices_is_parse_error(self, question_maker, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = SimpleNamespace(choices=[])

        with pytest.raises(ResponseParseError):
            question_maker.generate_questions("notes")
