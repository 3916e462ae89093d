# ruff: noqa: A005
"""Structured logging configuration.

Wraps structlog with environment-aware defaults and a redaction processor so
that personal fields (gender, interests) and secrets never reach log output.

Loggers are obtained with ``get_logger(__name__)`` and called with keyword
context::

    logger.info("Forum entered", member_id=member.id, forum_id=forum.id)
"""

import logging
import re
import sys
from dataclasses import dataclass, field
from typing import Any

import structlog
from structlog.contextvars import merge_contextvars

from rankgate.core.enums import Environment, LogFormat, LogLevel

# =====================================================================================
# CONFIGURATION
# =====================================================================================


@dataclass
class LogConfig:
    """Logging configuration with environment defaults."""

    level: LogLevel = field(default=LogLevel.INFO)
    format: LogFormat | None = field(default=None)
    environment: Environment = field(default=Environment.DEVELOPMENT)
    enable_timestamps: bool = field(default=True)
    enable_caller_info: bool = field(default=False)
    redact_sensitive_fields: bool = field(default=True)

    def __post_init__(self):
        if self.format is None:
            self.format = self._default_format()

    def _default_format(self) -> LogFormat:
        if self.environment == Environment.DEVELOPMENT:
            return LogFormat.CONSOLE
        if self.environment == Environment.TESTING:
            return LogFormat.PLAIN
        return LogFormat.JSON


# =====================================================================================
# PROCESSORS
# =====================================================================================

SENSITIVE_FIELD_PATTERNS = [
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"token", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"(^|_)key$", re.IGNORECASE),
    re.compile(r"credential", re.IGNORECASE),
    re.compile(r"gender", re.IGNORECASE),
    re.compile(r"interests", re.IGNORECASE),
]

MASK = "***[MASKED]"


def _is_sensitive(field_name: str) -> bool:
    return any(pattern.search(field_name) for pattern in SENSITIVE_FIELD_PATTERNS)


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: (MASK if _is_sensitive(str(k)) and v is not None else _redact(v))
            for k, v in value.items()
        }
    return value


def redact_sensitive_fields(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor masking values whose key names look sensitive."""
    for key in list(event_dict):
        if key == "event":
            continue
        value = event_dict[key]
        if _is_sensitive(key) and value is not None:
            event_dict[key] = MASK
        else:
            event_dict[key] = _redact(value)
    return event_dict


# =====================================================================================
# SETUP
# =====================================================================================

_configured_with: LogConfig | None = None


def configure_logging(config: LogConfig | None = None) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        config: Logging configuration. Built from application settings when
            omitted.
    """
    global _configured_with  # noqa: PLW0603

    if config is None:
        from rankgate.core.config import get_settings

        settings = get_settings()
        config = LogConfig(
            level=settings.log_level,
            format=settings.log_format,
            environment=settings.environment,
        )

    processors: list[Any] = [
        merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
    ]

    if config.enable_timestamps:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if config.enable_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            )
        )

    if config.redact_sensitive_fields:
        processors.append(redact_sensitive_fields)

    processors.extend(
        [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]
    )

    if config.format == LogFormat.JSON:
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))
    elif config.format == LogFormat.CONSOLE:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        processors.append(structlog.processors.KeyValueRenderer(key_order=["event"]))

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=config.level.to_logging_level(),
    )
    logging.getLogger().setLevel(config.level.to_logging_level())

    if config.environment == Environment.PRODUCTION:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
        logging.getLogger("celery").setLevel(logging.WARNING)

    _configured_with = config


def get_logger(name: str) -> Any:
    """
    Get a structured logger.

    Args:
        name: Logger name (usually __name__)

    Returns:
        A structlog logger accepting keyword context on every call.
    """
    return structlog.get_logger(name)


def is_configured() -> bool:
    return _configured_with is not None


def log_context(**kwargs: Any) -> None:
    """Add context variables to all subsequent logs in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all context variables."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "LogConfig",
    "clear_context",
    "configure_logging",
    "get_logger",
    "is_configured",
    "log_context",
    "redact_sensitive_fields",
]
