"""
Core Application - Infrastructure & Base Classes

This app contains infrastructure code shared by the domain apps:

- Generic, reusable base classes (no domain-specific logic)
- Clear extension points for domain apps
- Infrastructure concerns separated from business logic

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key
    - SoftDeleteMixin: Soft delete support (is_deleted, deleted_at)

Managers (import from core.managers):
    - SoftDeleteManager: Filtered view that skips soft-deleted rows

Services (import from core.services):
    - ErrorKind: Coarse failure taxonomy driving HTTP statuses
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError, NotFoundError, PermissionDeniedError, ConflictError,
      RateLimitError, InternalError: One per ErrorKind
    - application_exception_handler: DRF exception handler

OpenAPI (core.openapi):
    - group_endpoints: drf-spectacular postprocessing hook

Usage:
    from core.models import BaseModel
    from core.model_mixins import SoftDeleteMixin, UUIDPrimaryKeyMixin
    from core.managers import SoftDeleteManager
    from core.services import BaseService, ServiceResult
    from core.exceptions import NotFoundError

    class Note(UUIDPrimaryKeyMixin, SoftDeleteMixin, BaseModel):
        objects = models.Manager()
        live = SoftDeleteManager()
        body = models.TextField()

Note:
    - Business logic should NOT go here. Extend core classes in your domain apps.
    - Nothing is re-exported from this package. core.exceptions pulls in DRF
      and the models need the app registry, so importing them while Django
      loads INSTALLED_APPS would be premature. Import from the modules directly.
"""
