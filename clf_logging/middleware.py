"""
FastAPI / Starlette middleware that sets the request log context.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logger import CommonLogger, RequestContext


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    1. Sets the logger's ambient context from each request's headers
    2. Stores the request-local context on ``request.state.log_context``
    3. Optionally logs request completion with timing

    Add to your FastAPI app:
        app.add_middleware(RequestContextMiddleware, logger=clf_logger)

    Handlers that may interleave with other requests should log through
    ``clf_logger.bind(request.state.log_context)`` instead of the ambient context.
    """

    def __init__(self, app, logger: CommonLogger, log_requests: bool = False) -> None:
        super().__init__(app)
        self._logger = logger
        self._log_requests = log_requests

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        context = RequestContext.from_request(request)
        self._logger.set_context(request)
        request.state.log_context = context

        if not self._log_requests:
            return await call_next(request)

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            duration = int((time.time() - start_time) * 1000)
            self._logger.error(
                context,
                f"{request.method} {request.url.path} failed after {duration}ms",
            )
            raise

        duration = int((time.time() - start_time) * 1000)
        self._logger.info(
            context,
            f"{request.method} {request.url.path} {response.status_code} {duration}ms",
        )
        return response
