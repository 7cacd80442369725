"""Manager that creates users by email and stamps the profile username."""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    def create_user(self, email, password=None, username=None, **extra_fields):
        """
        Create a user keyed by email.

        Without a password the account gets an unusable one. `username`
        goes onto the Profile that the post_save handler has just created.

        Raises:
            ValueError: email is empty
        """
        if not email:
            raise ValueError("The Email field must be set")

        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        user = self.model(email=self.normalize_email(email), **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)

        if username:
            profile = user.profile
            profile.username = username
            profile.save(update_fields=["username", "updated_at"])
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        for flag in ("is_staff", "is_superuser"):
            if extra_fields.get(flag) is not True:
                raise ValueError(f"Superuser must have {flag}=True.")
        return self.create_user(email, password, **extra_fields)
