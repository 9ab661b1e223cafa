"""Logging setup for the relay process.

uvicorn is started with ``log_config=None``, so it installs no handlers of
its own. ``setup_logging`` gives the ``uvicorn`` logger tree the same
handlers and level as ``statusrelay``. Server start-up, ``uvicorn.error``
and ``uvicorn.access`` records then land next to the relay's own.
"""

from __future__ import annotations

import logging
import sys

from statusrelay.config.settings import LoggingConfig

# uvicorn.error and uvicorn.access propagate to "uvicorn".
MANAGED_LOGGERS = ("statusrelay", "uvicorn")

_installed_handlers: list[logging.Handler] = []


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the relay and uvicorn loggers from ``config``.

    Calling this again replaces the handlers from the previous call, so
    records are never emitted twice.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    teardown_logging()

    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter = logging.Formatter(config.format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file))

    for handler in handlers:
        handler.setFormatter(formatter)
        _installed_handlers.append(handler)

    for name in MANAGED_LOGGERS:
        managed = logging.getLogger(name)
        managed.setLevel(level)
        for handler in handlers:
            managed.addHandler(handler)

    logging.getLogger("statusrelay").info("Logging initialized at %s level", config.level)


def teardown_logging() -> None:
    """Detach and close every handler installed by ``setup_logging``."""
    for name in MANAGED_LOGGERS:
        managed = logging.getLogger(name)
        for handler in _installed_handlers:
            managed.removeHandler(handler)
    for handler in _installed_handlers:
        handler.close()
    _installed_handlers.clear()
