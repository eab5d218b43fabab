"""Order repository interface.

Extends ``IRepository[Order]`` with methods required by the Order
aggregate: atomic creation of the order with its detail and invoice shell,
and the administrative hard delete.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Invoice, Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes its ``OrderDetail``, its ``Invoice`` and
    the ``OrderPositionHistory`` records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its detail and invoice atomically.

        ``data`` must include ``customer``, ``detail`` (dict of
        ``OrderDetail`` fields) and ``invoice`` (dict of ``Invoice`` fields);
        ``collection`` and ``notes`` are optional.
        """

    @abstractmethod
    def save_invoice(self, invoice: Invoice) -> Invoice:
        """Persist the invoice of an order."""

    @abstractmethod
    def delete(self, order: Order) -> None:
        """Remove an order and its dependent rows (administrative)."""

    @abstractmethod
    def list_invoices(self, filters: Optional[Dict[str, Any]] = None):
        """Invoices, optionally filtered with ORM look-ups (for reporting)."""
