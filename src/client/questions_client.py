"""
Tanulas - Questions Client

Small HTTP client for the question server: get a token, send notes, and
check that a deployment is reachable and answering sensibly.
"""

import logging
from typing import Optional

import httpx

from src.llm.question_maker import QuestionsResponse

logger = logging.getLogger(__name__)

# Two facts in, so a healthy server should give exactly two pairs back.
TEST_NOTES = "- WW2 started in 1939 and finished in 1945"
TEST_EXPECTED_PAIRS = 2


class QuestionsClientError(Exception):
    """A request failed. `status_code` is None when the server was never reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class QuestionsClient:
    """Client for the /api/token and /api/questions endpoints."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            base_url: Server API root, e.g. "http://localhost:8001/api".
            token: Token from a previous request_token call.
            timeout: Request timeout in seconds.
            transport: Custom httpx transport (mainly for tests).
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _post(self, path: str, payload: dict, headers: Optional[dict] = None) -> httpx.Response:
        try:
            response = self._client.post(f"{self.base_url}{path}", json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise QuestionsClientError(str(e)) from e

        if response.is_error:
            raise QuestionsClientError(response.text, response.status_code)
        return response

    def request_token(self, secret: str, email: str) -> str:
        """
        Ask the server for a token and remember it for later requests.

        Returns:
            The token string.
        """
        response = self._post("/token", {"secret": secret, "email": email})
        self.token = response.text
        return self.token

    def get_questions(self, notes: str) -> QuestionsResponse:
        """
        Send notes and return the generated pairs.

        Raises:
            QuestionsClientError: If the notes are empty or the request failed.
        """
        if not notes:
            raise QuestionsClientError("No notes provided!")

        headers = {"Authorization": f"Bearer {self.token or ''}"}
        response = self._post("/questions", {"notes": notes}, headers=headers)
        try:
            return QuestionsResponse.model_validate(response.json())
        except ValueError as e:
            raise QuestionsClientError(f"Unexpected response from server: {e}", response.status_code) from e

    def check_server(self) -> tuple[bool, str]:
        """
        Make a test request to confirm the server and token work.

        Returns:
            (ok, message) where message is "Success!" or what went wrong.
        """
        try:
            result = self.get_questions(TEST_NOTES)
        except QuestionsClientError as e:
            logger.warning(f"Server check failed: {e.message}")
            return False, e.message

        if len(result.pairs) == TEST_EXPECTED_PAIRS:
            return True, "Success!"
        return False, "Got incorrect number of questions, please try again."


if __name__ == "__main__":
    import os

    logging.basicConfig(level=logging.INFO)

    client = QuestionsClient(
        os.getenv("TANULAS_SERVER_URL", "http://localhost:8001/api"),
        token=os.getenv("TANULAS_TOKEN"),
    )
    with client:
        ok, message = client.check_server()
    print(message if ok else f"Error: {message}")
