"""Box repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.boxes.models import Box


class IBoxRepository(IRepository["Box"]):
    """Repository contract for boxes."""

    @abstractmethod
    def get_by_number(self, number: str) -> Optional[Box]:
        """Retrieve a box by its operator-facing number."""

    @abstractmethod
    def members(self, box: Box) -> models.QuerySet:
        """Orders currently in the box."""

    @abstractmethod
    def adjust_count(self, box: Box, delta: int) -> None:
        """Shift ``orders_count`` by ``delta`` with an ``F()`` update."""
