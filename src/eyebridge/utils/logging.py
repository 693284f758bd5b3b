"""Logging setup for eyebridge.

Everything logs under the ``eyebridge`` logger. Console output goes to
stderr so ``eyebridge call`` can print envelopes on stdout.
"""

from __future__ import annotations

import logging
import sys

from eyebridge.config.settings import LoggingConfig

LOGGER_NAME = "eyebridge"


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Attach handlers to the ``eyebridge`` logger.

    Calling it again replaces the handlers installed by the previous call,
    so the CLI and tests can reconfigure without duplicating output.

    Args:
        config: Logging configuration. Defaults to INFO on stderr.
    """
    config = config or LoggingConfig()
    logger = logging.getLogger(LOGGER_NAME)

    for handler in list(logger.handlers):
        if getattr(handler, "_eyebridge", False):
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))
    formatter = logging.Formatter(config.format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler._eyebridge = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    logger.debug("Logging configured: level=%s file=%s", config.level, config.file or "-")
    return logger
