"""
User directory service.

The chat app never reaches into authentication models directly; it resolves
sender identity through UserDirectory so display data (username, picture)
is always read fresh from the profile.

Usage:
    from authentication.services import UserDirectory

    summary = UserDirectory.find_by_id(user_id)
    if summary is None:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass

from authentication.models import User
from core.services import BaseService


@dataclass(frozen=True)
class UserSummary:
    """Public identity of a user as shown next to messages and receipts."""

    id: int
    username: str
    display_picture: str | None


class UserDirectory(BaseService):
    """Lookup of users by id."""

    @staticmethod
    def summarize(user: User) -> UserSummary:
        """Build a UserSummary from a loaded user (profile should be prefetched)."""
        picture = None
        profile = getattr(user, "profile", None)
        if profile is not None:
            picture = profile.profile_picture_url
        return UserSummary(id=user.pk, username=user.username, display_picture=picture)

    @classmethod
    def get_user(cls, user_id) -> User | None:
        """Return the active user with this id, or None."""
        if user_id is None:
            return None
        try:
            return User.objects.select_related("profile").get(
                pk=user_id, is_active=True
            )
        except (User.DoesNotExist, ValueError, TypeError):
            return None

    @classmethod
    def find_by_id(cls, user_id) -> UserSummary | None:
        """
        Resolve a user id to its public summary.

        Args:
            user_id: Primary key of the user

        Returns:
            UserSummary, or None when no active user has this id
        """
        user = cls.get_user(user_id)
        if user is None:
            cls.get_logger().debug(f"User {user_id} not found")
            return None
        return cls.summarize(user)

    @classmethod
    def find_many(cls, user_ids) -> dict[int, User]:
        """Return active users keyed by id; unknown ids are omitted."""
        users = User.objects.select_related("profile").filter(
            pk__in=set(user_ids), is_active=True
        )
        return {user.pk: user for user in users}
