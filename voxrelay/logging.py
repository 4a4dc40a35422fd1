"""Structured logging for voxrelay.

Library modules only ever call ``get_logger``. Handlers and renderers are
installed by ``setup_logging``, which the host process calls once with the
config it loaded. Output goes through the ``voxrelay`` stdlib logger to
stderr, so stdout stays free for transcripts and the host's root logger is
left alone.
"""

import logging
import sys
from typing import Any, List, Optional, TextIO

import structlog
from structlog.typing import EventDict, Processor

from .config import VoxrelayConfig, get_config

PACKAGE_LOGGER = "voxrelay"
REDACTED = "***"

# Field and header names whose values are credentials
SECRET_FIELDS = frozenset(
    {
        "api_key",
        "fallback_api_key",
        "authorization",
        "xi-api-key",
        "api-subscription-key",
        "ocp-apim-subscription-key",
    }
)


def _is_secret(key: Any, value: Any) -> bool:
    return bool(value) and str(key).lower() in SECRET_FIELDS


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask credential values, including one level down in header dicts."""
    for key, value in list(event_dict.items()):
        if _is_secret(key, value):
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: REDACTED if _is_secret(k, v) else v for k, v in value.items()
            }
    return event_dict


def build_processors(log_format: str, colors: bool = False) -> List[Processor]:
    """Processor chain for ``json`` or ``console`` output."""
    processors: List[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors.extend(
            [
                structlog.processors.format_exc_info,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.JSONRenderer(),
            ]
        )
    else:
        # ConsoleRenderer formats exceptions itself
        processors.extend(
            [
                structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
                structlog.dev.ConsoleRenderer(colors=colors),
            ]
        )
    return processors


def setup_logging(
    config: Optional[VoxrelayConfig] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Install voxrelay's log handler and structlog processors.

    Safe to call more than once; the previous handler is replaced.

    Args:
        config: Level and format source (defaults to the global config)
        stream: Destination (defaults to stderr)
    """
    config = config or get_config()
    stream = stream or sys.stderr

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, config.log_level))
    package_logger.propagate = False

    structlog.configure(
        processors=build_processors(config.log_format, colors=stream.isatty()),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = PACKAGE_LOGGER) -> structlog.stdlib.BoundLogger:
    """Get a named logger (use ``__name__`` so it nests under ``voxrelay``)."""
    return structlog.get_logger(name)
