"""
Core Exceptions
================

Errors raised by services and repositories. The API layer turns each kind
into an HTTP status; nothing below the interfaces layer knows about HTTP.
"""

from typing import Any, Dict, Optional


class ApplicationException(Exception):
    """Base for every expected failure of a ticket or routing operation."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Error body returned to API clients."""
        body: Dict[str, Any] = {"detail": self.message, "error": type(self).__name__}
        if self.details:
            body["context"] = self.details
        return body


class DomainException(ApplicationException):
    """A business rule refused the operation."""


class PermissionDeniedException(DomainException):
    """The caller's role does not allow the action."""

    def __init__(self, action: str, user_id: Optional[str] = None):
        self.action = action
        self.user_id = user_id
        super().__init__(f"User '{user_id}' is not allowed to {action}", {"action": action})


class ValidationException(ApplicationException):
    """Input passed schema validation but is not acceptable (duplicate, inactive, ...)."""


class ResourceNotFoundException(ApplicationException):
    """No ticket or technician with the given identifier."""

    def __init__(self, resource_type: str, resource_id: Optional[str] = None):
        self.resource_type = resource_type
        self.resource_id = resource_id
        if resource_id:
            message = f"{resource_type} '{resource_id}' not found"
        else:
            message = f"{resource_type} not found"
        super().__init__(message)


class RepositoryException(ApplicationException):
    """Storage failed; the operation may be retried."""


class ConfigurationException(ApplicationException):
    """Settings name an unknown strategy or are otherwise unusable."""
