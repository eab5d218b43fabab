import time
from contextvars import ContextVar
from typing import Callable

import structlog
import uuid6
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()


class CorrelationIdMiddleware:
    """Tag every log line of a request with one correlation id.

    The id comes from the ``X-Request-ID`` header, or is a fresh UUIDv7 when
    the caller sends none, and is echoed back on the response.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = request.META.get("HTTP_X_REQUEST_ID") or str(uuid6.uuid7())
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        started = time.monotonic()
        logger.info("http.request_started", method=request.method, path=request.path)

        response = self.get_response(request)

        user = getattr(request, "user", None)
        logger.info(
            "http.request_finished",
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            user_id=getattr(user, "pk", None),
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )

        response["X-Request-ID"] = cid
        return response
