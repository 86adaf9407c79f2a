"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(user, admin_user):
        assert admin_user.is_platform_admin
"""

import pytest

from authentication.models import User
from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Create a basic user with an auto-created, empty profile."""
    return UserFactory()


@pytest.fixture
def named_user(db):
    """Create a user whose profile has a nickname and avatar."""
    return UserFactory(nickname="ana", avatar_url="avatars/ana.png")


@pytest.fixture
def platform_admin(db):
    """Create a user with the admin platform role."""
    return UserFactory(platform_role=User.PlatformRole.ADMIN)


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(
        email="superuser@example.com",
        password="SuperPass123!",
    )
