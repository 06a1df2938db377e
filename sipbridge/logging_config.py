"""
Structured Logging Configuration

Configures 'structlog' on top of the stdlib logging module. Every event gets
a timestamp, level, component name, the current call correlation id, and is
passed through a secret-redacting processor before rendering as JSON
(default) or colorized console output.
"""

import os
import logging
import sys
import contextvars
import uuid
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

import structlog
from structlog import dev as structlog_dev

SERVICE_NAME = "sip-bridge"

# Per-call / per-event correlation id. asyncio tasks copy the context on creation,
# so a value set in a call handler follows every task that handler spawns.
correlation_id_var: "contextvars.ContextVar[Optional[str]]" = contextvars.ContextVar("correlation_id", default=None)

# Keys whose values never reach a log sink (compared case-insensitively,
# separators stripped, suffix match so "sip_password" is caught too).
SENSITIVE_KEYS = frozenset({
    "api_key", "apikey", "api_keys",
    "token", "access_token", "auth_token", "bearer",
    "password", "passwd", "pwd",
    "authorization", "auth",
    "credential", "credentials", "secret", "secrets",
})
_SENSITIVE_NORMALIZED = tuple(k.replace("_", "").replace("-", "") for k in SENSITIVE_KEYS)

REDACTED = "***REDACTED***"


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def set_correlation_id(value: Optional[str] = None) -> str:
    """Bind a correlation id to the current context, generating one if needed."""
    if not value:
        value = str(uuid.uuid4())
    correlation_id_var.set(value)
    return value


def add_correlation_id(logger, method_name, event_dict):
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def add_service_context(logger, method_name, event_dict):
    event_dict["service"] = SERVICE_NAME
    component = event_dict.get("logger")
    if not component:
        component = getattr(getattr(logger, "logger", None), "name", None) or "unknown"
    event_dict["component"] = component
    return event_dict


def _is_sensitive_key(key: Any) -> bool:
    normalized = str(key).lower().replace("_", "").replace("-", "")
    return any(normalized == p or normalized.endswith(p) for p in _SENSITIVE_NORMALIZED)


def _redact_value(value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        if not value:
            return ""
        # Keep a two-character prefix so operators can tell which key was used
        if len(value) > 4:
            return f"{value[:2]}{REDACTED}"
        return REDACTED
    if isinstance(value, (list, tuple)):
        return [_redact_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _redact_value(v) for k, v in value.items()}
    return REDACTED


def _sanitize(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: _redact_value(v) if _is_sensitive_key(k) else _sanitize(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_sanitize(v) for v in value]
    return value


def sanitize_secrets(logger, method_name, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Redact credentials from a log event.

    Trunk passwords, agent-platform API keys, messaging access tokens and
    Authorization headers are replaced with '***REDACTED***' wherever they
    appear in the event, including nested dicts and lists of dicts.
    """
    return _sanitize(event_dict)


def _resolve_level(log_level: Any) -> int:
    if isinstance(log_level, int):
        return log_level
    return getattr(logging, str(log_level).upper(), logging.INFO)


def configure_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    log_to_file: bool = False,
    log_file_path: str = "sip-bridge.log",
) -> None:
    """
    Set up structured logging for the bridge process.

    Environment overrides (optional):
      - LOG_LEVEL / LOGLEVEL: debug|info|warning|error (default: INFO)
      - LOG_FORMAT: json|console (default: json)
      - LOG_COLOR: 0|1 (console only; default: 1)
      - LOG_TO_FILE: 0|1 (default: 0)
      - LOG_FILE_PATH: path of the rotating log file
    """
    env_level = os.getenv("LOG_LEVEL") or os.getenv("LOGLEVEL")
    if env_level:
        log_level = env_level
    if os.getenv("LOG_TO_FILE") is not None:
        log_to_file = os.getenv("LOG_TO_FILE", "0").strip().lower() in ("1", "true", "yes")
    log_file_path = os.getenv("LOG_FILE_PATH", log_file_path)
    log_format = (os.getenv("LOG_FORMAT") or log_format or "json").strip().lower()
    log_color = os.getenv("LOG_COLOR", "1").strip().lower() not in ("0", "false")

    level_value = _resolve_level(log_level)
    show_tracebacks = level_value <= logging.DEBUG or os.getenv("LOG_SHOW_TRACEBACKS", "").lower() == "always"

    def suppress_exc_info_if_disabled(logger, method_name, event_dict):
        if not show_tracebacks and event_dict.get("exc_info"):
            event_dict.pop("exc_info", None)
        return event_dict

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_service_context,
            add_correlation_id,
            sanitize_secrets,
            suppress_exc_info_if_disabled,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if log_format == "console":
        renderer = structlog_dev.ConsoleRenderer(colors=log_color)
    else:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
        ],
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level_value)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        try:
            directory = os.path.dirname(log_file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            file_handler = RotatingFileHandler(log_file_path, maxBytes=10 * 1024 * 1024, backupCount=5)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as exc:
            root_logger.warning("File logging disabled (%s); continuing with console only", exc)

    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str):
    """Get a structlog logger."""
    return structlog.get_logger(name)
