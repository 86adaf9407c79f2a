"""
Tests for UserManager.

UserManager handles email-based user creation:
- create_user(): regular users, optional password
- create_superuser(): admin users holding the super_admin platform role

Related files:
    - managers.py: Implementation under test
    - models.py: User model that uses this manager
"""

import pytest

from authentication.models import Profile, User


class TestUserManagerCreateUser:
    """Tests for UserManager.create_user() method."""

    def test_creates_user_with_email_and_password(self, db):
        """
        Given valid email and password
        When create_user is called
        Then a user is created with those credentials
        """
        user = User.objects.create_user(email="mgr@example.com", password="SecurePass123!")

        assert user.pk is not None
        assert user.email == "mgr@example.com"
        assert user.check_password("SecurePass123!") is True

    def test_normalizes_email_domain_to_lowercase(self, db):
        """
        Given an email with uppercase characters in domain
        When create_user is called
        Then the domain portion is normalized to lowercase
        """
        user = User.objects.create_user(email="Test.User@EXAMPLE.COM", password="x")

        assert user.email == "Test.User@example.com"

    def test_raises_valueerror_when_email_is_empty(self, db):
        with pytest.raises(ValueError) as exc_info:
            User.objects.create_user(email="", password="TestPass123!")

        assert "Email field must be set" in str(exc_info.value)

    def test_defaults_to_user_platform_role(self, db):
        """
        Given no platform_role
        When create_user is called
        Then the user is a plain platform user, not an admin
        """
        user = User.objects.create_user(email="plain@example.com")

        assert user.platform_role == User.PlatformRole.USER
        assert user.is_platform_admin is False
        assert user.has_usable_password() is False

    def test_creates_profile_via_signal(self, db):
        """
        Given a new user
        When create_user is called
        Then an empty Profile row exists for display lookups
        """
        user = User.objects.create_user(email="profiled@example.com")

        assert Profile.objects.filter(user=user).exists()


class TestUserManagerCreateSuperuser:
    """Tests for UserManager.create_superuser() method."""

    def test_creates_superuser_with_super_admin_role(self, db):
        superuser = User.objects.create_superuser(
            email="root@example.com", password="AdminPass123!"
        )

        assert superuser.is_staff is True
        assert superuser.is_superuser is True
        assert superuser.platform_role == User.PlatformRole.SUPER_ADMIN
        assert superuser.is_platform_admin is True

    def test_raises_valueerror_when_is_staff_is_false(self, db):
        with pytest.raises(ValueError):
            User.objects.create_superuser(
                email="bad@example.com", password="x", is_staff=False
            )
