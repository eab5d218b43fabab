"""DRF exception handler for domain errors.

Plugged into drf-standardized-errors so domain errors share the
``{"type": ..., "errors": [{"code", "detail", "attr"}]}`` envelope with
DRF's own validation and authentication errors.
"""

from __future__ import annotations

import structlog
from django.db import DatabaseError
from drf_standardized_errors.handler import ExceptionHandler
from rest_framework import exceptions as drf_exceptions

from modules.core.exceptions import FulfillmentError, InternalError, ValidationError

logger = structlog.get_logger(__name__)


class DomainAPIException(drf_exceptions.APIException):
    """``APIException`` carrying the status and code of a ``FulfillmentError``."""

    def __init__(self, error: FulfillmentError) -> None:
        self.status_code = error.status_code
        super().__init__(detail=error.detail, code=error.default_code)


def to_api_exception(error: FulfillmentError) -> drf_exceptions.APIException:
    """Map a domain error onto the DRF exception the formatter understands."""
    if isinstance(error, ValidationError):
        detail = drf_exceptions.ErrorDetail(error.detail, code=error.default_code)
        if error.attr:
            return drf_exceptions.ValidationError({error.attr: [detail]})
        return drf_exceptions.ValidationError([detail])
    return DomainAPIException(error)


class FulfillmentExceptionHandler(ExceptionHandler):
    """Translate domain and storage errors before standard formatting."""

    def convert_known_exceptions(self, exc: Exception) -> Exception:
        if isinstance(exc, DatabaseError):
            logger.error("api.storage_failure", error=str(exc))
            exc = InternalError("Storage failure.")
        if isinstance(exc, FulfillmentError):
            log = logger.bind(code=exc.default_code, status_code=exc.status_code)
            if exc.status_code >= 500:
                log.error("api.domain_error", detail=exc.detail)
            else:
                log.info("api.domain_error", detail=exc.detail)
            return to_api_exception(exc)
        return super().convert_known_exceptions(exc)
