"""Central logging utilities for AudienceGuard.

The library itself never configures the root logger on import; applications
call ``configure_logging()`` once at startup (or leave logging to the host
framework) and modules obtain their loggers through ``get_logger()``.

Key Features
------------
1. configure_logging(): idempotent initialization of the root logger.
2. get_logger(name): typed helper returning a logger under the
   ``audience_guard`` namespace.
"""

from __future__ import annotations

import logging
from typing import Final

from beartype import beartype

__all__: Final = [
    "configure_logging",
    "get_logger",
]

_DEFAULT_LOG_FORMAT: Final = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_ROOT_LOGGER_NAME: Final = "audience_guard"
_is_configured: bool = False


@beartype
def configure_logging(
    *, level: int | str = logging.INFO, fmt: str = _DEFAULT_LOG_FORMAT
) -> None:
    """Send AudienceGuard diagnostics somewhere visible.

    For applications that have no logging setup of their own; denial
    suggestions are emitted at WARNING under ``audience_guard``. Only the
    first call configures the root logger. ``level`` may be a number or a
    level name such as ``"DEBUG"``.
    """
    global _is_configured
    if _is_configured:
        return

    logging.basicConfig(level=level, format=fmt)
    _is_configured = True


@beartype
def get_logger(name: str | None = None, *, level: int | None = None) -> logging.Logger:
    """Return a logger in the package namespace.

    Names that are not already dotted under ``audience_guard`` are nested
    beneath it so a single ``logging.getLogger("audience_guard")`` controls
    every diagnostic this package emits.
    """
    if not name:
        logger_name = _ROOT_LOGGER_NAME
    elif name == _ROOT_LOGGER_NAME or name.startswith(f"{_ROOT_LOGGER_NAME}."):
        logger_name = name
    else:
        logger_name = f"{_ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(logger_name)
    if level is not None:
        logger.setLevel(level)
    return logger
