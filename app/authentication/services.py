"""
Authentication services.

This module provides the identity collaborators the chat service consumes:
- UserDirectory: read-only display lookups (nickname, avatar) by user id
- PlatformRoleService: platform-level admin checks
- AuthService: profile maintenance

Related files:
    - models.py: User, Profile
    - signals.py: Profile auto-creation
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from authentication.models import Profile, User

logger = logging.getLogger(__name__)

ANONYMOUS_NICKNAME = "Anonymous"


class UserDirectory:
    """
    Read-only lookup of user display data.

    Missing users are tolerated: lookups return None for them instead
    of raising, so a deleted account never breaks a conversation read.

    Usage:
        from authentication.services import UserDirectory

        info = UserDirectory.get_display_info([1, 2, 3])
        info[1]  # {"nickname": "ana", "avatar_url": None}
        info[3]  # None when user 3 does not exist
    """

    @staticmethod
    def get_display_info(user_ids: Iterable[int]) -> dict[int, dict | None]:
        """
        Batch-resolve display data for the given user ids.

        Args:
            user_ids: User primary keys (duplicates allowed)

        Returns:
            Mapping of every requested id to {"nickname", "avatar_url"},
            or None when the user does not exist
        """
        from authentication.models import Profile

        ids = {int(user_id) for user_id in user_ids if user_id is not None}
        if not ids:
            return {}

        found = {
            profile.user_id: {
                "nickname": profile.nickname or None,
                "avatar_url": profile.avatar_url or None,
            }
            for profile in Profile.objects.filter(user_id__in=ids).only(
                "user_id", "nickname", "avatar_url"
            )
        }

        missing = ids - found.keys()
        if missing:
            logger.debug(f"Display info missing for users: {sorted(missing)}")

        return {user_id: found.get(user_id) for user_id in ids}


class PlatformRoleService:
    """
    Resolves platform-wide roles for authorization checks that sit above
    any single conversation (e.g. deleting a conversation one does not own).
    """

    @staticmethod
    def is_platform_admin(user_id: int) -> bool:
        """True if the user holds the admin or super_admin platform role."""
        from authentication.models import User

        user = User.objects.filter(pk=user_id, is_active=True).first()
        return bool(user and user.is_platform_admin)


class AuthService:
    """
    Profile maintenance for authenticated users.

    Usage:
        from authentication.services import AuthService

        profile = AuthService.update_profile(user, nickname="ana")
    """

    @staticmethod
    def get_or_create_profile(user: User) -> Profile:
        from authentication.models import Profile

        profile, created = Profile.objects.get_or_create(user=user)
        if created:
            logger.debug(f"Profile created for user: {user.pk}")
        return profile

    @staticmethod
    def update_profile(user: User, **data) -> Profile:
        """
        Update user profile display data.

        Args:
            user: User instance
            **data: Profile fields to update (nickname, avatar_url)

        Returns:
            Updated Profile instance
        """
        profile = AuthService.get_or_create_profile(user)

        for field, value in data.items():
            if hasattr(profile, field):
                setattr(profile, field, value)

        profile.save()
        logger.info(f"Profile updated for user: {user.pk}")
        return profile
