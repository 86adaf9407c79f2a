"""
Manager for soft-deleted models.

Soft-deleted rows stay in the table so moderators can restore them and
history can show a placeholder. The plain default manager sees every
row; SoftDeleteManager is the filtered view for reads that must skip them.

Usage:
    from core.managers import SoftDeleteManager

    class Message(SoftDeleteMixin, BaseModel):
        objects = models.Manager()    # Everything (default manager)
        live = SoftDeleteManager()    # Excludes deleted

    Message.live.filter(conversation=conversation)      # Only live messages
    Message.objects.filter(conversation=conversation)   # Everything

Related:
    - core.model_mixins.SoftDeleteMixin: soft_delete(), restore(), hard_delete()
"""

from __future__ import annotations

from django.db import models


class SoftDeleteManager(models.Manager):
    """
    Manager that filters out soft-deleted records.

    Never make this the default manager: related lookups and admin would
    stop seeing deleted rows, and restore needs to find them.
    """

    def get_queryset(self) -> models.QuerySet:
        return super().get_queryset().filter(is_deleted=False)
