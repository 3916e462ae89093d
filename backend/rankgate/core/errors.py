"""Error hierarchy shared by every layer of the application.

Every error carries a stable ``code``, a ``details`` mapping and a
``user_message`` so the transport layer can build a response from
``to_dict()`` without inspecting exception types one by one. ``status_code``
and ``retryable`` are hints for that mapping.
"""

import time
from typing import Any


class RankGateError(Exception):
    """Base exception for all RankGate errors."""

    default_code: str = "ERROR"
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message
        self.code = kwargs.get("code") or self.default_code
        self.details: dict[str, Any] = dict(kwargs.get("details") or {})
        self.user_message = kwargs.get("user_message") or message
        self.recovery_hint: str | None = kwargs.get("recovery_hint")
        self.timestamp = time.time()
        if kwargs.get("cause") is not None:
            self.__cause__ = kwargs["cause"]

    def to_dict(self, include_details: bool = True) -> dict[str, Any]:
        """Serialize for API responses and structured logs.

        Detail keys starting with an underscore are internal and never
        serialized.
        """
        data: dict[str, Any] = {
            "error": self.code,
            "message": self.user_message,
            "timestamp": self.timestamp,
        }
        if include_details and self.details:
            data["details"] = {
                key: value for key, value in self.details.items() if not key.startswith("_")
            }
        if self.recovery_hint:
            data["recovery_hint"] = self.recovery_hint
        if self.retryable:
            data["retryable"] = True
        return data

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class DomainError(RankGateError):
    """A business rule was violated; the aggregate is unchanged."""

    default_code = "DOMAIN_ERROR"
    status_code = 400


class ApplicationError(RankGateError):
    """A use case could not be carried out."""

    default_code = "APPLICATION_ERROR"
    status_code = 400


class InfrastructureError(RankGateError):
    """Storage, broker or other external failure."""

    default_code = "INFRASTRUCTURE_ERROR"
    status_code = 500
    retryable = True


class ValidationError(ApplicationError):
    default_code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(
        self,
        message: str,
        field: str | None = None,
        field_errors: dict[str, list[str]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        if field:
            self.details["field"] = field
        if field_errors:
            self.details["field_errors"] = field_errors


class NotFoundError(ApplicationError):
    default_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: Any, **kwargs: Any) -> None:
        kwargs.setdefault("user_message", f"The requested {resource.lower()} was not found")
        super().__init__(f"{resource} not found: {identifier}", **kwargs)
        self.resource = resource
        self.identifier = identifier
        self.details.update({"resource": resource, "identifier": str(identifier)})


class ConflictError(ApplicationError):
    """The request clashes with the current state of a resource."""

    default_code = "CONFLICT"
    status_code = 409

    def __init__(self, message: str, resource: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        if resource:
            self.details["resource"] = resource


class ForbiddenError(ApplicationError):
    default_code = "FORBIDDEN"
    status_code = 403

    def __init__(self, message: str = "Access denied", **kwargs: Any) -> None:
        kwargs.setdefault("user_message", "You are not allowed to do this")
        super().__init__(message, **kwargs)


class RateLimitError(ApplicationError):
    """Too many attempts inside the limiter window."""

    default_code = "RATE_LIMIT_EXCEEDED"
    status_code = 429
    retryable = True

    def __init__(
        self, limit: int, window_seconds: float, retry_after: int | None = None, **kwargs: Any
    ) -> None:
        retry_after = retry_after or int(window_seconds)
        kwargs.setdefault("user_message", "Too many attempts. Please try again later.")
        kwargs.setdefault("recovery_hint", f"Wait {retry_after} seconds before retrying")
        super().__init__(f"Rate limit exceeded: {limit} per {window_seconds}s", **kwargs)
        self.details.update(
            {"limit": limit, "window_seconds": window_seconds, "retry_after": retry_after}
        )


class ConfigurationError(InfrastructureError):
    """Settings are missing or malformed."""

    default_code = "CONFIGURATION_ERROR"
    retryable = False

    def __init__(self, message: str, config_key: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("user_message", "Service configuration issue")
        super().__init__(message, **kwargs)
        if config_key:
            self.details["config_key"] = config_key


__all__ = [
    "ApplicationError",
    "ConfigurationError",
    "ConflictError",
    "DomainError",
    "ForbiddenError",
    "InfrastructureError",
    "NotFoundError",
    "RankGateError",
    "RateLimitError",
    "ValidationError",
]
