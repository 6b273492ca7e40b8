"""skunk.log — Logging setup for the CLI."""

from __future__ import annotations

import logging

from skunk.errors import ConfigError

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "info") -> logging.Logger:
    """Attach a stderr handler to the skunk logger.

    Safe to call more than once; the previous handler is replaced.
    """
    try:
        numeric = LEVELS[level.lower()]
    except KeyError:
        raise ConfigError(
            f"Unknown log level: '{level}'. Expected one of: debug, info, warn, error"
        ) from None

    log = logging.getLogger("skunk")
    for handler in list(log.handlers):
        if getattr(handler, "_skunk", False):
            log.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._skunk = True  # type: ignore[attr-defined]
    log.addHandler(handler)
    log.setLevel(numeric)
    return log
