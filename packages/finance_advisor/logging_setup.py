"""Logging for the ``finance_advisor`` package.

Library modules call ``get_logger("finance_advisor.<module>")`` and never
attach handlers; until something configures output, the package logger
carries a ``NullHandler`` and stays silent.

The console interface owns output. Each invocation calls
:func:`configure_logging`, which installs (or replaces) the package's single
stream handler, so repeated invocations in one process (tests, notebooks)
never stack handlers or keep writing to a stale stream. Level precedence is
the ``--log-level`` option, then ``FINANCE_ADVISOR_LOG_LEVEL``, then WARNING:
command output goes to stdout and the ``ingest:``/``insights:`` event lines
only show up when asked for.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "finance_advisor"
LOG_LEVEL_ENV = "FINANCE_ADVISOR_LOG_LEVEL"
DEFAULT_LEVEL = logging.WARNING
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# The handler installed by configure_logging, if any.
_handler: logging.Handler | None = None


def parse_level(value: int | str | None) -> int | None:
    """Return the numeric level for ``value`` or ``None`` when unrecognized.

    Accepts ints, numeric strings and standard level names in any case.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    name = value.strip().upper()
    if not name:
        return None
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else None


def resolve_level(level: int | str | None = None) -> int:
    """Apply the precedence: explicit ``level``, then the env var, then WARNING.

    Raises
    ------
    ValueError
        When an explicit ``level`` is not a recognized level. An unrecognized
        env value is ignored instead, since it was not typed on this command.
    """

    if level is not None:
        resolved = parse_level(level)
        if resolved is None:
            raise ValueError(f"unknown log level: {level!r}")
        return resolved
    from_env = parse_level(os.getenv(LOG_LEVEL_ENV))
    return from_env if from_env is not None else DEFAULT_LEVEL


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> int:
    """Install the package's stream handler and return the effective level.

    ``stream`` defaults to the ``sys.stderr`` current at call time. Calling
    again replaces the previous handler rather than adding a second one.
    """

    global _handler
    resolved = resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)

    for h in list(logger.handlers):
        if h is _handler or isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    # Avoid double emission via the root logger.
    logger.propagate = False
    _handler = handler
    return resolved


def reset_logging() -> None:
    """Undo :func:`configure_logging`, returning the package to silent library mode."""

    global _handler
    logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = [
    "DEFAULT_LEVEL",
    "LOG_LEVEL_ENV",
    "configure_logging",
    "get_logger",
    "parse_level",
    "reset_logging",
    "resolve_level",
]
