"""
API Middleware

Cross-origin headers for browser clients and request logging.
"""

import time
import logging
from typing import Callable
from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"

ALLOWED_HEADERS = (
    "Content-Type, Content-Length, Accept-Encoding, X-CSRF-Token, Authorization, "
    "accept, origin, Cache-Control, X-Requested-With"
)
ALLOWED_METHODS = "POST, OPTIONS, GET, PUT, DELETE"


class APICORSMiddleware(BaseHTTPMiddleware):
    """
    Permissive CORS for everything under /api/.

    The request's Origin is reflected back with credentials allowed, and
    OPTIONS preflights are answered with an empty 204 before routing, so
    they succeed whether or not the path exists.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        if not request.url.path.startswith(API_PREFIX):
            return await call_next(request)

        if request.method == "OPTIONS":
            response = Response(status_code=status.HTTP_204_NO_CONTENT)
        else:
            response = await call_next(request)

        origin = request.headers.get("Origin") or "*"
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
        response.headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs all requests for monitoring and debugging. Bodies are never logged.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        start_time = time.time()

        logger.info(
            f"Request: {request.method} {request.url.path} "
            f"from {request.client.host if request.client else 'unknown'}"
        )

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(
            f"Response: {response.status_code} "
            f"Duration: {duration:.3f}s"
        )

        return response
