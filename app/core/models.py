"""
Abstract timestamped base for domain models.

created_at is filled in by the INSERT (auto_now_add), so it records when a
row was persisted rather than when the instance was constructed.
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    Adds created_at and updated_at.

    QuerySet.update() skips auto_now; services use that when updated_at has
    to carry a specific value.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{type(self).__name__}(id={self.pk})"
