"""Customer service layer (Use Cases).

Besides registration and maintenance, exposes ``resolve_by_handle``: the
customer lookup the order flow uses to turn a phone handle into a local
account.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import models, transaction

from modules.customers.exceptions import CustomerAlreadyExists, CustomerNotFound
from modules.customers.models import Customer

if TYPE_CHECKING:
    from modules.customers.dtos import CreateCustomerDTO, UpdateCustomerDTO
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerService:
    """Application service for Customer use-cases.

    Receives an ``ICustomerRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: ICustomerRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_customer(self, dto: CreateCustomerDTO) -> Customer:
        """Register a customer.

        Raises:
            CustomerAlreadyExists: the phone handle is taken.
        """
        if self._repo.get_by_phone(dto.phone):
            logger.warning("customer.duplicate_phone")
            raise CustomerAlreadyExists("Phone number already registered.", attr="phone")

        customer = Customer(
            name=dto.name,
            phone=dto.phone,
            email=dto.email,
            city=dto.city,
            address=dto.address,
        )
        customer = self._repo.save(customer)
        logger.info("customer.created", customer_id=str(customer.id))
        return customer

    @transaction.atomic
    def update_customer(self, id: str, dto: UpdateCustomerDTO) -> Customer:
        """Update the supplied fields.

        Raises:
            CustomerNotFound: the customer does not exist.
        """
        customer = self._repo.get_for_update(id)
        if not customer:
            raise CustomerNotFound(f"Customer {id} not found.")

        for field in ("name", "email", "city", "address", "is_active"):
            value = getattr(dto, field)
            if value is not None:
                setattr(customer, field, value)

        customer = self._repo.save(customer)
        logger.info("customer.updated", customer_id=str(id))
        return customer

    @transaction.atomic
    def deactivate_customer(self, id: str) -> Customer:
        """Deactivate a customer; existing orders keep their reference.

        Raises:
            CustomerNotFound: the customer does not exist.
        """
        customer = self._repo.get_for_update(id)
        if not customer:
            raise CustomerNotFound(f"Customer {id} not found.")
        customer.is_active = False
        self._repo.save(customer)
        logger.info("customer.deactivated", customer_id=str(id))
        return customer

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def resolve_by_handle(self, handle: str) -> Customer:
        """Return the active local account behind a phone handle.

        Raises:
            CustomerNotFound: no account, or the account is inactive.
        """
        customer = self._repo.get_by_phone(handle)
        if not customer or not customer.is_active:
            logger.warning("customer.handle_not_resolved")
            raise CustomerNotFound(
                "Customer has no active local account.", attr="customer_phone"
            )
        return customer

    def list_customers(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        return self._repo.list(filters)

    def get_customer(self, id: str) -> Customer:
        """Retrieve a single customer by ID.

        Raises:
            CustomerNotFound: the customer does not exist.
        """
        customer = self._repo.get_by_id(id)
        if not customer:
            raise CustomerNotFound(f"Customer {id} not found.")
        return customer
