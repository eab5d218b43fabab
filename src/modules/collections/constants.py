"""Collection domain constants."""

from __future__ import annotations

from django.db import models


class CollectionStatus(models.IntegerChoices):
    IN_PROGRESS = 1, "In progress"
    PARTIAL = 2, "Partially ready"
    COMPLETE = 3, "Complete"
