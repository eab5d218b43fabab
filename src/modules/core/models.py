"""Base abstract model and the audit trail for the fulfillment system.

Provides:
- ``BaseModel``: UUIDv7 primary key + created_at / updated_at timestamps.
- ``AuditEntry``: append-only record of every successful mutation, written
  by the audit handler after the mutating transaction commits.

Design decisions:
- ``save()`` guard ensures ``updated_at`` is included when ``update_fields``
  is specified (Django skips ``auto_now`` fields otherwise).
- Audit rows store JSON snapshots (``before`` / ``after``) rather than
  foreign keys so they survive an administrative delete of the entity.
"""

from __future__ import annotations

import uuid6
from django.db import models

# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        """Ensure ``updated_at`` is refreshed even when ``update_fields`` is passed."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------


class AuditEntry(BaseModel):
    """One audited mutation: who changed which entity, and how.

    ``event_id`` is unique so a handler that runs twice for the same domain
    event cannot record it twice.
    """

    event_id = models.UUIDField(unique=True)
    event_type = models.CharField(max_length=100)
    entity_type = models.CharField(max_length=50)
    entity_id = models.CharField(max_length=255)
    action = models.CharField(max_length=50)
    before = models.JSONField(null=True, blank=True, default=None)
    after = models.JSONField(null=True, blank=True, default=None)
    actor_id = models.CharField(max_length=255, blank=True, default="")
    occurred_at = models.DateTimeField()

    class Meta:
        db_table = "audit_entries"
        ordering = ["-occurred_at"]
        indexes = [
            models.Index(
                fields=["entity_type", "entity_id"],
                name="audit_entity_idx",
            ),
            models.Index(
                fields=["-occurred_at"],
                name="audit_occurred_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.entity_type}:{self.entity_id} {self.action}"
