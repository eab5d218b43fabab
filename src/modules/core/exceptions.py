"""Fulfillment error taxonomy.

Every service raises one of these (or a module-specific subclass).  The
error propagates out of the ``transaction.atomic`` boundary, which rolls
back the whole use case, and the DRF exception handler maps it to a stable
status code and ``code`` string.  Views never catch them.
"""

from __future__ import annotations


class FulfillmentError(Exception):
    """Base class for every domain error."""

    status_code = 400
    default_code = "error"
    default_detail = "Request could not be processed."

    def __init__(self, detail: str | None = None, *, attr: str | None = None) -> None:
        self.detail = detail or self.default_detail
        self.attr = attr
        super().__init__(self.detail)


class ValidationError(FulfillmentError):
    """Malformed or missing input, or an out-of-range amount."""

    status_code = 400
    default_code = "validation_error"
    default_detail = "Invalid input."


class NotFoundError(FulfillmentError):
    """A referenced entity does not exist."""

    status_code = 404
    default_code = "not_found"
    default_detail = "Not found."


class ConflictError(FulfillmentError):
    """A state precondition was violated (wrong position, closed container...)."""

    status_code = 409
    default_code = "conflict"
    default_detail = "The resource is not in a state that allows this operation."


class InsufficientFundsError(FulfillmentError):
    """A treasury balance is smaller than the requested debit."""

    status_code = 409
    default_code = "insufficient_funds"
    default_detail = "Insufficient treasury balance."


class InternalError(FulfillmentError):
    """Storage or transport failure."""

    status_code = 500
    default_code = "internal_error"
    default_detail = "Internal error."
