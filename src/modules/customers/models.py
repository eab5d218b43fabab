"""Customer model.

Business rules implemented:
- The phone number is the customer's handle: unique, stored normalised
  (digits with an optional leading ``+``).
- An inactive customer cannot place orders (enforced at service layer).
- Customers are deactivated, never deleted, because orders reference them
  with ``PROTECT``.
- The phone number is masked in ``__str__`` and logs.
"""

from __future__ import annotations

import re

from django.db import models

from modules.core.models import BaseModel

_PHONE_NOISE = re.compile(r"[^\d+]")


def normalize_phone(value: str) -> str:
    """Strip spaces, dashes and brackets from a phone handle."""
    return _PHONE_NOISE.sub("", value or "")


class Customer(BaseModel):
    """Customer aggregate root."""

    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, unique=True)
    email = models.EmailField(max_length=254, blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")
    address = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="customers_created_idx"),
            models.Index(fields=["is_active"], name="customers_active_idx"),
        ]

    def save(self, *args, **kwargs) -> None:
        if self.phone:
            self.phone = normalize_phone(self.phone)
        super().save(*args, **kwargs)

    @property
    def masked_phone(self) -> str:
        return f"***{self.phone[-4:]}" if self.phone else "????"

    def __str__(self) -> str:
        return f"{self.name} ({self.masked_phone})"
