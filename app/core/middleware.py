# app/core/middleware.py
"""Request tracing and logging middleware"""
import uuid
import time
import logging
from starlette.requests import Request

logger = logging.getLogger(__name__)


async def correlation_id_middleware(request: Request, call_next):
    """Add correlation ID to all requests for tracing"""
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    """Log method, path, status and duration of every request"""
    start_time = time.time()
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    response = await call_next(request)

    duration_ms = round((time.time() - start_time) * 1000, 2)
    message = f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)"
    extra = {
        "correlation_id": correlation_id,
        "method": request.method,
        "path": request.url.path,
        "status_code": response.status_code,
        "duration_ms": duration_ms,
        "client": request.client.host if request.client else "unknown",
    }

    if response.status_code >= 500:
        logger.error(message, extra=extra)
    elif response.status_code >= 400:
        logger.warning(message, extra=extra)
    else:
        logger.info(message, extra=extra)

    return response
