"""Customer domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import ConflictError, NotFoundError


class CustomerAlreadyExists(ConflictError):
    """A customer with the same phone handle already exists."""

    default_code = "customer_already_exists"


class CustomerNotFound(NotFoundError):
    """No active local account matches the requested id or handle."""

    default_code = "customer_not_found"
