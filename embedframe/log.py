"""Logging for embedframe.

Fatal conditions are raised as exceptions. Everything else (dropped
notifications, ignored payloads, storage writes, bundle runs) goes to the
``embedframe`` logger, whose level comes from the ``[log]`` settings section.
"""

from __future__ import annotations

import logging
import sys

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Collection

    from .config import LogSettings


LOGGER_NAME = "embedframe"

_FORMAT = "%(name)s - %(levelname)s - %(message)s"

# Installed on first use; None until then
_handler: logging.Handler | None = None


def get_logger() -> logging.Logger:
    """Return the embedframe logger, installing its stderr handler on first use."""
    global _handler  # pylint: disable=global-statement

    logger = logging.getLogger(LOGGER_NAME)
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(_handler)
        if logger.level == logging.NOTSET:
            logger.setLevel(logging.WARNING)
    return logger


def configure(settings: LogSettings, debug_enabled: bool = False) -> None:
    """Apply the ``[log]`` settings section.

    Parameters
    ----------
    settings : LogSettings
        The configured log level.
    debug_enabled : bool, optional
        Force DEBUG regardless of ``settings`` (the CLI's ``--debug``).
    """
    get_logger().setLevel(logging.DEBUG if debug_enabled else settings.level)


def debug(msg: str) -> None:
    get_logger().debug(msg)


def info(msg: str) -> None:
    get_logger().info(msg)


def warn(msg: str) -> None:
    get_logger().warning(msg)


def exception(msg: str) -> None:
    """Log ``msg`` with the active traceback. Call from an except block."""
    get_logger().exception(msg)


def describe_storage_write(key: str, value: str, sensitive_keys: Collection[str]) -> str:
    """Render one storage write for the log.

    Values stored under ``sensitive_keys`` (the session token, the anonymous
    username) are replaced by their length.

    Parameters
    ----------
    key : str
        Storage key written.
    value : str
        Value written.
    sensitive_keys : Collection[str]
        Keys whose values must not reach log output.

    Returns
    -------
    str
        ``key=<value>`` with the value masked when sensitive.
    """
    if key in sensitive_keys:
        return f"{key}=<redacted, {len(value)} chars>"
    return f"{key}={value!r}"
