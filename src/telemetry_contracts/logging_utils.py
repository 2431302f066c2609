"""
Logging setup for hosts that want this package's diagnostics on stdout.

The package only creates module-level loggers and never installs handlers on
import. Its diagnostics are warnings about data it had to repair during
`sanitize()`: missing required fields, negative durations. A host calls
`configure_logging()` once at startup; level and format come from
`TelemetrySettings` (``TELEMETRY_CONTRACTS_LOG_LEVEL`` and
``TELEMETRY_CONTRACTS_LOG_FORMAT``) unless a level is passed explicitly.
"""
from __future__ import annotations

import logging
import sys
from typing import Final

from .config import TelemetrySettings, get_settings

PACKAGE_LOGGER: Final[str] = "telemetry_contracts"
DEFAULT_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT: Final[str] = "%Y-%m-%d %H:%M:%S"
_CONFIGURED: bool = False


def _resolve_level(name: str | None) -> int:
    if not name:
        return logging.INFO
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(
    *,
    force: bool = False,
    level: str | None = None,
    settings: TelemetrySettings | None = None,
) -> None:
    """
    Configure the root logger to stream messages to stdout.

    The package logger follows the root level, but never drops below
    ``WARNING`` so repaired-field warnings stay visible under a quiet root.

    Args:
        force: When True, existing root handlers are cleared before configuring.
        level: Explicit level name; overrides the configured ``log_level``.
        settings: Optional explicit settings; defaults to `get_settings()`.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    cfg = settings if settings is not None else get_settings()
    root_logger = logging.getLogger()
    if force:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)

    resolved = _resolve_level(level or cfg.log_level)
    root_logger.setLevel(resolved)
    logging.getLogger(PACKAGE_LOGGER).setLevel(min(resolved, logging.WARNING))

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(
        logging.Formatter(fmt=cfg.log_format or DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT)
    )
    root_logger.addHandler(handler)

    _CONFIGURED = True


__all__ = ["configure_logging", "PACKAGE_LOGGER", "DEFAULT_FORMAT", "DEFAULT_DATEFMT"]
