"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/token/             - Obtain access/refresh pair (email + password)
    /api/v1/auth/token/refresh/     - Rotate refresh token
    /api/v1/auth/token/blacklist/   - Revoke a refresh token (logout)

The access token is also what WebSocket clients pass to ws/chat/ routes.
"""

from django.urls import path
from rest_framework_simplejwt.views import (
    TokenBlacklistView,
    TokenObtainPairView,
    TokenRefreshView,
)

app_name = "authentication"

urlpatterns = [
    path("token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("token/blacklist/", TokenBlacklistView.as_view(), name="token-blacklist"),
]
