"""
Tests for authentication app.

This package contains test modules for:
- test_managers.py: UserManager tests
- test_services.py: UserDirectory, PlatformRoleService and AuthService tests

Usage:
    pytest app/authentication/tests/
"""
