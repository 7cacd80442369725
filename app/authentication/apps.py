from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Users, profiles and JWT token endpoints."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
    verbose_name = "Authentication"

    def ready(self):
        # Connects the post_save handler that gives every user a Profile
        from authentication import signals  # noqa: F401
