"""Signals for automatic Order position history tracking.

Services may set ``_position_change_notes`` / ``_position_change_user_id``
on the instance before saving; the receiver records them with the change.
``QuerySet.update`` bypasses these signals, so bulk advances call
``record_bulk_history`` themselves.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, cast

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from modules.orders.models import Order, OrderPositionHistory


class _OrderPositionAware(Protocol):
    _previous_position: int | None
    _position_change_notes: str | None
    _position_change_user_id: int | None


@receiver(pre_save, sender=Order)
def _capture_previous_position(sender, instance: Order, **kwargs) -> None:
    aware = cast(_OrderPositionAware, instance)
    if instance._state.adding:
        aware._previous_position = None
        return
    aware._previous_position = (
        sender.objects.filter(pk=instance.pk).values_list("position", flat=True).first()
    )


@receiver(post_save, sender=Order)
def _create_position_history(sender, instance: Order, created: bool, **kwargs) -> None:
    aware = cast(_OrderPositionAware, instance)
    previous: Optional[int] = getattr(aware, "_previous_position", None)
    notes = getattr(aware, "_position_change_notes", None)
    user_id = getattr(aware, "_position_change_user_id", None)

    if not created and previous == instance.position:
        _clear_transient_position_attrs(instance)
        return

    if created and notes is None:
        notes = "Order created"

    OrderPositionHistory.objects.create(
        order=instance,
        old_position=previous,
        new_position=instance.position,
        notes=notes or "",
        user_id=user_id,
    )
    _clear_transient_position_attrs(instance)


def record_bulk_history(
    changes: Iterable[tuple[Order, int]],
    new_position: int,
    notes: str = "",
) -> None:
    """History for orders moved with ``QuerySet.update``.

    ``changes`` pairs each order with the position it had before the update.
    """
    OrderPositionHistory.objects.bulk_create(
        [
            OrderPositionHistory(
                order=order,
                old_position=old_position,
                new_position=new_position,
                notes=notes,
            )
            for order, old_position in changes
        ]
    )


def _clear_transient_position_attrs(instance: Order) -> None:
    for attr in ("_previous_position", "_position_change_notes", "_position_change_user_id"):
        if hasattr(instance, attr):
            delattr(instance, attr)
