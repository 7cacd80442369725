"""
Authentication application.

This app owns the user records the chat core consumes as an external
collaborator.

Key components:
    - User model: Custom email-based user authentication
    - Profile model: Public username and profile picture
    - UserDirectory: Lookup of users by id (services.py)
    - JWT token endpoints (simplejwt)

Usage:
    from authentication.models import User, Profile
    from authentication.services import UserDirectory
"""
