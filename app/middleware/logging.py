import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags every request with an id (reusing the caller's when sent) and logs its outcome."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"
        fields = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else None,
        }

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"[{request_id}] {route} failed after {_elapsed_ms(started)}ms: {exc}",
                extra={**fields, "duration_ms": _elapsed_ms(started)}
            )
            raise

        duration = _elapsed_ms(started)
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            f"[{request_id}] {route} -> {response.status_code} ({duration}ms)",
            extra={**fields, "status_code": response.status_code, "duration_ms": duration}
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
