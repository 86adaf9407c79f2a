"""
Authentication models.

This module defines the identity models the chat service reads from:
- User: Custom user model with email-based authentication and a
  platform-level role (user, admin, super_admin)
- Profile: Public display data (nickname, avatar) used to hydrate
  conversations, participants and messages

Related files:
    - managers.py: Custom user manager for email-based creation
    - services.py: UserDirectory (display lookups, platform role checks)
    - signals.py: Auto-create profile on user creation
"""

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager
from core.models import BaseModel


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        platform_role: Platform-wide role, independent of any conversation
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        user = User.objects.create_user(
            email='user@example.com',
            password='securepassword'
        )
    """

    class PlatformRole(models.TextChoices):
        USER = "user", "User"
        ADMIN = "admin", "Admin"
        SUPER_ADMIN = "super_admin", "Super admin"

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    platform_role = models.CharField(
        max_length=20,
        choices=PlatformRole.choices,
        default=PlatformRole.USER,
        help_text="Platform-wide role; admins may delete any conversation",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    @property
    def is_platform_admin(self) -> bool:
        """Whether this user holds a platform admin or super-admin role."""
        return self.is_superuser or self.platform_role in (
            self.PlatformRole.ADMIN,
            self.PlatformRole.SUPER_ADMIN,
        )


class Profile(BaseModel):
    """
    Public display data for a user.

    Fields:
        user: OneToOne link to User (also serves as primary key)
        nickname: Display name shown in conversations
        avatar_url: Avatar image URL or storage path

    Note:
        Profile is automatically created via signals when a User is created.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
        help_text="User this profile belongs to",
    )

    nickname = models.CharField(
        max_length=50,
        blank=True,
        help_text="Display name shown to other users",
    )

    avatar_url = models.CharField(
        max_length=500,
        blank=True,
        help_text="Avatar image URL or storage object path",
    )

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"

    def __str__(self):
        return self.nickname or str(self.user)
