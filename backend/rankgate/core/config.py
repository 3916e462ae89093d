"""Application configuration.

Settings are grouped into one dataclass per concern and loaded from
environment variables through ``EnvironmentLoader``. A ``.env`` file, when
present, seeds variables that are not already set in the process environment.

Architecture:
- EnvironmentLoader: typed access to environment variables
- DatabaseConfig: async SQLAlchemy connection settings
- SecurityConfig: field encryption key
- ChatConfig: external chat widget channel naming
- SessionPolicyConfig: private chat expiry and VC verification windows
- RateLimitConfig: forum entry throttling
- CeleryConfig: broker, result backend and cleanup schedule
- Settings: aggregate of all sections
"""

import base64
import binascii
import os
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any

from rankgate.core.enums import Environment, LogFormat, LogLevel
from rankgate.core.errors import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class EnvironmentLoader:
    """
    Environment variable loader with type conversion and validation.

    Missing optional values fall back to their defaults; malformed values
    raise ``ConfigurationError`` naming the offending key.
    """

    def __init__(self, env_file: str | None = ".env", environ: dict[str, str] | None = None):
        """
        Initialize environment loader.

        Args:
            env_file: Optional environment file to load
            environ: Mapping to read from instead of ``os.environ``
        """
        self.env_file = env_file
        self.environ = os.environ if environ is None else environ
        self._load_env_file()

    def _load_env_file(self) -> None:
        """Load environment variables from file if it exists."""
        if not self.env_file or not os.path.exists(self.env_file):
            return

        try:
            with open(self.env_file, encoding="utf-8") as f:
                for raw_line in f:
                    line = raw_line.strip()
                    if not line or line.startswith("#") or "=" not in line:
                        continue

                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip()

                    if (value.startswith('"') and value.endswith('"')) or (
                        value.startswith("'") and value.endswith("'")
                    ):
                        value = value[1:-1]

                    # Real environment wins over the file
                    if key not in self.environ:
                        self.environ[key] = value

        except OSError as e:
            raise ConfigurationError(
                f"Failed to load environment file {self.env_file}: {e}"
            ) from e

    def _raw(self, key: str, required: bool) -> str | None:
        value = self.environ.get(key)
        if value is not None and value.strip() == "":
            value = None
        if value is None and required:
            raise ConfigurationError(f"{key} is required", config_key=key)
        return value

    def get_string(
        self, key: str, default: str | None = None, required: bool = False
    ) -> str | None:
        """Get string value from environment."""
        value = self._raw(key, required)
        return default if value is None else value.strip()

    def get_integer(
        self,
        key: str,
        default: int | None = None,
        required: bool = False,
        min_value: int | None = None,
    ) -> int | None:
        """Get integer value from environment."""
        value = self._raw(key, required)
        if value is None:
            return default
        try:
            result = int(value)
        except ValueError as e:
            raise ConfigurationError(
                f"{key} must be an integer, got {value!r}", config_key=key
            ) from e
        if min_value is not None and result < min_value:
            raise ConfigurationError(
                f"{key} must be at least {min_value}, got {result}", config_key=key
            )
        return result

    def get_boolean(
        self, key: str, default: bool | None = None, required: bool = False
    ) -> bool | None:
        """Get boolean value from environment."""
        value = self._raw(key, required)
        if value is None:
            return default
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConfigurationError(
            f"{key} must be a boolean, got {value!r}", config_key=key
        )

    def get_enum(
        self,
        key: str,
        enum_class: type[Enum],
        default: Enum | None = None,
        required: bool = False,
    ) -> Any:
        """Get enum value from environment, matching by value or by name."""
        value = self._raw(key, required)
        if value is None:
            return default
        for member in enum_class:
            member_value = member.value[0] if isinstance(member.value, tuple) else member.value
            if value.lower() in (str(member_value).lower(), member.name.lower()):
                return member
        allowed = ", ".join(member.name.lower() for member in enum_class)
        raise ConfigurationError(
            f"{key} must be one of: {allowed}; got {value!r}", config_key=key
        )


# =====================================================================================
# SECTIONS
# =====================================================================================


@dataclass
class DatabaseConfig:
    """Database connection settings."""

    url: str = field(default="sqlite+aiosqlite:///./rankgate.db")
    echo: bool = field(default=False)
    pool_pre_ping: bool = field(default=True)

    def __post_init__(self):
        if "+" not in self.url.split("://", 1)[0]:
            raise ConfigurationError(
                "DATABASE_URL must name an async driver, e.g. sqlite+aiosqlite://",
                config_key="DATABASE_URL",
            )

    def get_engine_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"echo": self.echo}
        if not self.url.startswith("sqlite"):
            kwargs["pool_pre_ping"] = self.pool_pre_ping
        return kwargs


@dataclass
class SecurityConfig:
    """Secrets used by infrastructure adapters."""

    field_encryption_key: str | None = field(default=None)

    def __post_init__(self):
        if self.field_encryption_key is None:
            return
        try:
            raw = base64.b64decode(self.field_encryption_key, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ConfigurationError(
                "FIELD_ENCRYPTION_KEY must be base64 encoded",
                config_key="FIELD_ENCRYPTION_KEY",
            ) from e
        if len(raw) != 32:
            raise ConfigurationError(
                "FIELD_ENCRYPTION_KEY must decode to 32 bytes for AES-256",
                config_key="FIELD_ENCRYPTION_KEY",
            )


@dataclass
class ChatConfig:
    """External chat widget settings."""

    base_url: str = field(default="https://tlk.io")
    forum_channel_max_length: int = field(default=30)
    session_channel_max_length: int = field(default=20)


@dataclass
class SessionPolicyConfig:
    """Private chat expiry windows, match queue lifetime and VC verification timeout."""

    daily_match_hours: int = field(default=24)
    group_initiated_hours: int = field(default=12)
    grace_period_minutes: int = field(default=5)
    vc_verification_ttl_minutes: int = field(default=5)
    match_queue_ttl_minutes: int = field(default=10)

    def __post_init__(self):
        if self.daily_match_hours <= 0 or self.group_initiated_hours <= 0:
            raise ConfigurationError("Session durations must be positive")
        if self.grace_period_minutes < 0:
            raise ConfigurationError("Grace period cannot be negative")
        if self.vc_verification_ttl_minutes <= 0:
            raise ConfigurationError("VC verification TTL must be positive")
        if self.match_queue_ttl_minutes <= 0:
            raise ConfigurationError("Match queue TTL must be positive")

    @property
    def grace_period_ms(self) -> int:
        return self.grace_period_minutes * 60 * 1000

    @property
    def vc_verification_ttl_ms(self) -> int:
        return self.vc_verification_ttl_minutes * 60 * 1000

    @property
    def match_queue_ttl_ms(self) -> int:
        return self.match_queue_ttl_minutes * 60 * 1000


@dataclass
class RateLimitConfig:
    """Forum entry throttling."""

    forum_entry_limit: int = field(default=10)
    forum_entry_window_seconds: int = field(default=60)


@dataclass
class CeleryConfig:
    """Celery broker and schedule settings."""

    broker_url: str = field(default="memory://")
    result_backend: str = field(default="cache+memory://")
    task_always_eager: bool = field(default=False)
    session_cleanup_interval_seconds: int = field(default=300)


# =====================================================================================
# SETTINGS
# =====================================================================================


class Settings:
    """
    Main application settings.

    Usage Example:
        settings = get_settings()
        engine = create_engine(settings.database)
        ttl = settings.session_policy.vc_verification_ttl_ms
    """

    def __init__(self, env_file: str | None = ".env", environ: dict[str, str] | None = None):
        self.env_loader = EnvironmentLoader(env_file, environ)
        self._load_application_config()
        self._load_database_config()
        self._load_security_config()
        self._load_chat_config()
        self._load_session_policy_config()
        self._load_rate_limit_config()
        self._load_celery_config()

    def _load_application_config(self) -> None:
        loader = self.env_loader
        self.environment = loader.get_enum(
            "ENVIRONMENT", Environment, Environment.DEVELOPMENT
        )
        self.log_level = loader.get_enum("LOG_LEVEL", LogLevel, LogLevel.INFO)
        self.log_format = loader.get_enum("LOG_FORMAT", LogFormat, None)
        self.max_lock_retries = loader.get_integer("MAX_LOCK_RETRIES", 3, min_value=1)

    def _load_database_config(self) -> None:
        self.database = DatabaseConfig(
            url=self.env_loader.get_string(
                "DATABASE_URL", "sqlite+aiosqlite:///./rankgate.db"
            ),
            echo=self.env_loader.get_boolean("DATABASE_ECHO", False),
        )

    def _load_security_config(self) -> None:
        key = self.env_loader.get_string("FIELD_ENCRYPTION_KEY")
        if key is None and not self.environment.allows_ephemeral_keys:
            raise ConfigurationError(
                "FIELD_ENCRYPTION_KEY is required outside development and testing",
                config_key="FIELD_ENCRYPTION_KEY",
            )
        self.security = SecurityConfig(field_encryption_key=key)

    def _load_chat_config(self) -> None:
        loader = self.env_loader
        self.chat = ChatConfig(
            base_url=loader.get_string("TLK_BASE_URL", "https://tlk.io"),
            forum_channel_max_length=loader.get_integer(
                "TLK_FORUM_CHANNEL_MAX_LENGTH", 30, min_value=8
            ),
            session_channel_max_length=loader.get_integer(
                "TLK_SESSION_CHANNEL_MAX_LENGTH", 20, min_value=8
            ),
        )

    def _load_session_policy_config(self) -> None:
        loader = self.env_loader
        self.session_policy = SessionPolicyConfig(
            daily_match_hours=loader.get_integer("SESSION_DAILY_MATCH_HOURS", 24),
            group_initiated_hours=loader.get_integer("SESSION_GROUP_INITIATED_HOURS", 12),
            grace_period_minutes=loader.get_integer("SESSION_GRACE_PERIOD_MINUTES", 5),
            vc_verification_ttl_minutes=loader.get_integer(
                "VC_VERIFICATION_TTL_MINUTES", 5
            ),
            match_queue_ttl_minutes=loader.get_integer("MATCH_QUEUE_TTL_MINUTES", 10),
        )

    def _load_rate_limit_config(self) -> None:
        self.rate_limit = RateLimitConfig(
            forum_entry_limit=self.env_loader.get_integer(
                "FORUM_ENTRY_RATE_LIMIT", 10, min_value=1
            ),
            forum_entry_window_seconds=self.env_loader.get_integer(
                "FORUM_ENTRY_RATE_WINDOW_SECONDS", 60, min_value=1
            ),
        )

    def _load_celery_config(self) -> None:
        loader = self.env_loader
        self.celery = CeleryConfig(
            broker_url=loader.get_string("CELERY_BROKER_URL", "memory://"),
            result_backend=loader.get_string("CELERY_RESULT_BACKEND", "cache+memory://"),
            task_always_eager=loader.get_boolean("CELERY_TASK_ALWAYS_EAGER", False),
            session_cleanup_interval_seconds=loader.get_integer(
                "SESSION_CLEANUP_INTERVAL_SECONDS", 300, min_value=1
            ),
        )

    def get_celery_config(self) -> dict[str, Any]:
        """
        Get Celery configuration dictionary.

        Returns:
            dict[str, Any]: Celery configuration
        """
        return {
            "broker_url": self.celery.broker_url,
            "result_backend": self.celery.result_backend,
            "task_serializer": "json",
            "accept_content": ["json"],
            "result_serializer": "json",
            "timezone": "UTC",
            "enable_utc": True,
            "task_track_started": True,
            "task_time_limit": 10 * 60,
            "task_soft_time_limit": 8 * 60,
            "task_acks_late": True,
            "worker_prefetch_multiplier": 1,
            "task_always_eager": self.celery.task_always_eager,
        }

    def to_dict(self, include_secrets: bool = False) -> dict[str, Any]:
        data = {
            "environment": self.environment.value,
            "log_level": self.log_level.level_name,
            "database_echo": self.database.echo,
            "tlk_base_url": self.chat.base_url,
            "daily_match_hours": self.session_policy.daily_match_hours,
            "group_initiated_hours": self.session_policy.group_initiated_hours,
            "grace_period_minutes": self.session_policy.grace_period_minutes,
            "max_lock_retries": self.max_lock_retries,
            "session_cleanup_interval_seconds": self.celery.session_cleanup_interval_seconds,
        }
        if include_secrets:
            data.update(
                {
                    "database_url": self.database.url,
                    "field_encryption_key": self.security.field_encryption_key,
                }
            )
        return data


@lru_cache
def get_settings(env_file: str | None = ".env") -> Settings:
    """
    Get cached settings instance.

    Args:
        env_file: Environment file to load

    Returns:
        Settings: Application settings
    """
    return Settings(env_file)


__all__ = [
    "ChatConfig",
    "CeleryConfig",
    "DatabaseConfig",
    "EnvironmentLoader",
    "RateLimitConfig",
    "SecurityConfig",
    "SessionPolicyConfig",
    "Settings",
    "get_settings",
]
