"""
User blocking.

Changes:
    - Create UserBlock with one row per (blocker, blocked) pair
    - Index blocked for "who blocked this user" lookups
"""

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("chat", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="UserBlock",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "blocked",
                    models.ForeignKey(
                        help_text="User who is blocked",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="chat_blocked_by",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "blocker",
                    models.ForeignKey(
                        help_text="User who created the block",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="chat_blocks",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_user_block",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["blocked"], name="chat_block_blocked_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("blocker", "blocked"),
                        name="unique_user_block",
                    ),
                ],
            },
        ),
    ]
