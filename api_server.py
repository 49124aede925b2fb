"""
Tanulas - Question Server

Issues tokens and turns study notes into revision questions. Notes are
relayed to an OpenAI model; everything else (auth, validation, CORS) runs
here.

Usage:
    python api_server.py
"""

import asyncio
import logging
import threading
import time
import concurrent.futures
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
import uvicorn

from api.auth import issue_token, require_token
from api.config import Settings, get_settings
from api.errors import (
    APIError,
    GenerationRefused,
    InvalidRequest,
    PayloadTooLarge,
    ServiceUnavailable,
    UpstreamParseError,
    UpstreamRequestError,
)
from api.middleware import APICORSMiddleware, RequestLoggingMiddleware
from api.models import TokenRequest, NotesRequest, QuestionsResponse, HealthResponse

from src.llm.question_maker import (
    QuestionMaker,
    ModelRefusalError,
    ProviderRequestError,
    ResponseParseError,
)


# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("audit")

# Thread pool for blocking provider calls
executor = concurrent.futures.ThreadPoolExecutor(max_workers=4, thread_name_prefix="api")


class APIState:
    """Global API state."""
    def __init__(self):
        self.question_maker: Optional[QuestionMaker] = None
        self.init_lock = threading.Lock()


state = APIState()


def get_question_maker(settings: Settings = Depends(get_settings)) -> Optional[QuestionMaker]:
    """
    Get or create the shared question maker.

    Returns None when no provider key is configured. Once created the
    instance is only ever read.
    """
    if state.question_maker is None and settings.provider_configured:
        with state.init_lock:
            if state.question_maker is None:
                question_maker = QuestionMaker(
                    api_key=settings.openai_api_key,
                    base_url=settings.openai_base_url,
                    model=settings.openai_model,
                )
                # Build the OpenAI client here so worker threads only read it
                question_maker._get_client()
                state.question_maker = question_maker
    return state.question_maker


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    settings = get_settings()
    logger.info("Tanulas API Server starting...")
    if get_question_maker(settings) is None:
        logger.warning("OPENAI_API_KEY not set, question generation is disabled")
    if not settings.user_secret or not settings.jwt_secret:
        logger.warning("USER_SECRET/JWT_SECRET not set, tokens cannot be issued")
    logger.info("API Server ready!")
    yield
    logger.info("Shutting down API server...")
    executor.shutdown(wait=True)


app = FastAPI(
    title="Tanulas API",
    description="Revision questions from study notes",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS is added last so it wraps everything, including preflights to unknown paths
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(APICORSMiddleware)


# ==================== Health & Auth Endpoints ====================

@app.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint (no auth required)."""
    return HealthResponse(
        status="healthy",
        timestamp=time.time(),
        provider_configured=settings.provider_configured,
    )


@app.post("/api/token", response_class=PlainTextResponse)
async def create_token(data: TokenRequest, settings: Settings = Depends(get_settings)):
    """
    Exchange the shared secret and an email for a token.

    The token is valid for three hours and goes in the `Authorization`
    header as `Bearer <token>`.
    """
    token = issue_token(data.secret, data.email, settings)
    logger.info(f"Issued token for {data.email}")
    return PlainTextResponse(token)


# ==================== Question Endpoints ====================

@app.post(
    "/api/questions",
    response_model=QuestionsResponse,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": NotesRequest.model_json_schema()}},
        }
    },
)
async def make_questions(
    request: Request,
    email: str = Depends(require_token),
    question_maker: Optional[QuestionMaker] = Depends(get_question_maker),
    settings: Settings = Depends(get_settings),
):
    """
    Generate revision questions from notes.

    Requires a token from /api/token. The body is only read once the token
    has been accepted.
    """
    try:
        data = NotesRequest.model_validate_json(await request.body())
    except ValidationError as e:
        logger.info(f"Invalid request to {request.url.path}: {[err['loc'] for err in e.errors()]}")
        raise InvalidRequest() from e

    if len(data.notes) > settings.max_notes_length:
        raise PayloadTooLarge()

    # Who asked what, for spotting abuse
    audit_logger.info(f"{email}: {data.notes}")

    if question_maker is None:
        raise ServiceUnavailable()

    try:
        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(
            executor,
            question_maker.generate_questions,
            data.notes,
        )
    except ModelRefusalError as e:
        logger.warning(f"Model refused request from {email}: {e.reason}")
        raise GenerationRefused(e.reason) from e
    except ProviderRequestError as e:
        logger.error(f"Provider request failed: {e}")
        raise UpstreamRequestError() from e
    except ResponseParseError as e:
        logger.exception(f"Could not parse model response: {e}")
        raise UpstreamParseError() from e

    return JSONResponse(content=result.model_dump(exclude_none=True))


# ==================== Error Handlers ====================

@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    return PlainTextResponse(exc.message, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Invalid request to {request.url.path}: {[e['loc'] for e in exc.errors()]}")
    error = InvalidRequest()
    return PlainTextResponse(error.message, status_code=error.status_code)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}")
    return PlainTextResponse("Internal server error", status_code=500)


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "api_server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level="info",
    )
