from __future__ import annotations

import logging
import os
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog

# Shared by a request and every refresh or replay it triggers
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Event keys whose values never reach log output in clear
_SENSITIVE_MARKERS = ("password", "secret", "token", "authorization", "email", "otp")

EventDict = Dict[str, Any]


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Bind a correlation id (a fresh uuid4 when none is given) to this context."""
    cid = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(cid)
    return cid


def redact_token(token: Optional[str]) -> Optional[str]:
    """Mask a credential, keeping two characters at each end of long values."""
    if not token:
        return token
    if len(token) <= 4:
        return "***"
    return f"{token[:2]}***{token[-2:]}"


def _add_correlation_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    cid = correlation_id_var.get()
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def _redact_credentials(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    for key, value in event_dict.items():
        if not isinstance(value, str):
            continue
        if any(marker in key.lower() for marker in _SENSITIVE_MARKERS):
            event_dict[key] = redact_token(value)
    return event_dict


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


def _configure_structlog(log_level: str, *, json_output: bool, development_mode: bool) -> None:
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_correlation_id,
        _redact_credentials,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if development_mode or not json_output:
        processors.append(structlog.dev.ConsoleRenderer(colors=development_mode))
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


_configure_structlog(
    os.getenv("LOG_LEVEL", "INFO"),
    json_output=_env_flag("LOG_JSON", "true"),
    development_mode=_env_flag("LOG_DEV_MODE", "false"),
)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
