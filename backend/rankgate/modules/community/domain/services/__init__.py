from rankgate.modules.community.domain.services.session_expiry_service import (
    CleanupError,
    ExpiryCheckResult,
    SessionCleanupResult,
    SessionExpiryService,
    SessionStats,
)

__all__ = [
    "CleanupError",
    "ExpiryCheckResult",
    "SessionCleanupResult",
    "SessionExpiryService",
    "SessionStats",
]
