"""Request tracing for the SpecMate report service."""
import logging
import re
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("specmate-api.middleware")

REQUEST_ID_HEADER = "X-Request-ID"
SKIP_LOG_PATHS = {"/health"}

# Client-supplied ids are echoed only when they look like an id, never free text
_CLIENT_REQUEST_ID = re.compile(r"^[A-Za-z0-9-]{8,64}$")


def request_id_for(request: Request) -> Optional[str]:
    """Id assigned to this request by RequestTimingMiddleware, if any."""
    return getattr(request.state, "request_id", None)


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id and times it.

    - Reuses a well-formed incoming X-Request-ID so the browser can correlate
      a download with its own usage log; otherwise a fresh uuid4 hex is used.
    - The id is stored on request.state; report routes attach it to their
      log lines through request_id_for().
    - Adds X-Request-ID and X-Process-Time (ms) to the response.
    - Emits one access line per request, except /health.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = incoming if _CLIENT_REQUEST_ID.match(incoming) else uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        response: Response = await call_next(request)

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        if request.url.path not in SKIP_LOG_PATHS:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms} ms)",
                extra={
                    "http_method": request.method,
                    "http_path": request.url.path,
                    "http_status": response.status_code,
                    "request_id": request_id,
                    "duration_ms": duration_ms,
                },
            )
        return response
