"""
Tests for authentication app.

This package contains test modules for:
- test_models.py: User and Profile model tests
- test_services.py: UserDirectory and JWT token endpoint tests

Usage:
    pytest authentication/tests/
"""
