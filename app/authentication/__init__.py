"""
Authentication application.

This app provides the identity side of the chat service: who a user is,
how they are displayed and which platform-wide role they hold.

Key components:
    - User model: Custom email-based user with a platform role
    - Profile model: Display data (nickname, avatar)
    - UserDirectory: Display lookups that tolerate missing users
    - PlatformRoleService: Platform admin checks

Usage:
    from authentication.models import User, Profile
    from authentication.services import PlatformRoleService, UserDirectory
"""
