"""
Abstract timestamped base model.

Every persisted chat and identity record carries when it was written and
when it last changed. Chat relies on these columns directly: message
history is ordered by created_at (ties broken by id), and the edit window
is measured from it.

Base Classes:
    BaseModel: created_at / updated_at

Usage:
    from core.models import BaseModel
    from core.model_mixins import SoftDeleteMixin, UUIDPrimaryKeyMixin

    class Message(UUIDPrimaryKeyMixin, SoftDeleteMixin, BaseModel):
        text = models.TextField()

Note:
    List mixins before BaseModel so their fields and Meta come first.
    Partial saves must include "updated_at" in update_fields, otherwise
    auto_now is skipped.
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    Abstract model with creation and modification timestamps.

    Fields:
        created_at: Set once on insert; indexed for time-ordered reads
        updated_at: Refreshed on every save()

    Subclasses override Meta.ordering when newest-first is wrong for them
    (history pages read oldest-first within a tie on created_at).
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
        return f"{self.__class__.__name__}(id={self.pk})"
