"""
Shared infrastructure for the domain apps.

core.models      BaseModel (created_at / updated_at)
core.services    BaseService, ServiceResult
core.exceptions  BaseApplicationError and its coded subclasses
core.views       health_check

Models are not re-exported here; importing them before the app registry
is ready raises AppRegistryNotReady.
"""

from .exceptions import (
    BaseApplicationError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from .services import BaseService, ServiceResult

__all__ = [
    "BaseService",
    "ServiceResult",
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "ExternalServiceError",
]
