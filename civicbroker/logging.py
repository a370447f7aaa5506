"""Logging helpers for femtologging integration.

Every module obtains its logger through ``get_logger(__name__)`` and emits
percent-style messages through the ``log_*`` helpers so formatting stays
consistent between the core and the HTTP shell.

Examples
--------
Configure logging and emit a message:

>>> level, used_default = configure_logging("INFO")
>>> log_info(get_logger(__name__), "Indexed %s tokens", 12)
"""

from __future__ import annotations

import enum
import typing as typ

from femtologging import basicConfig, get_logger


class LogLevel(enum.StrEnum):
    """Log levels accepted by ``configure_logging``."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def configure_logging(level: str | None, *, force: bool = False) -> tuple[str, bool]:
    """Configure femtologging and return the normalised level.

    Parameters
    ----------
    level : str | None
        Requested log level, or None to use the default. ``WARN`` is accepted
        as an alias of ``WARNING``.
    force : bool, optional
        Whether to force reconfiguration of logging handlers.

    Returns
    -------
    tuple[str, bool]
        ``(effective_level, used_default)``; ``used_default`` is True when the
        input was missing or not a known level.
    """
    requested = level.strip().upper() if level else None
    if requested == "WARN":
        requested = LogLevel.WARNING.value
    if not requested or requested not in LogLevel.__members__:
        normalised = LogLevel.INFO
        used_default = True
    else:
        normalised = LogLevel(requested)
        used_default = False

    basicConfig(level=normalised, force=force)
    return (normalised, used_default)


class _SupportsLog(typ.Protocol):
    """Structural type for femtologging loggers."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> None: ...


def _emit(
    logger: _SupportsLog,
    level: LogLevel,
    template: str,
    args: tuple[object, ...],
    exc_info: object | None,
) -> None:
    message = template % args if args else template
    logger.log(level, message, exc_info=exc_info, stack_info=False)


def log_debug(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Format and emit a DEBUG log message."""
    _emit(logger, LogLevel.DEBUG, template, args, exc_info)


def log_info(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Format and emit an INFO log message.

    Used for state changes worth keeping in production logs: ingested
    records, recorded scores and profile updates. ``template`` is only
    interpolated when ``args`` are given, so literal percent signs are safe
    in argument-free messages.
    """
    _emit(logger, LogLevel.INFO, template, args, exc_info)


def log_warning(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Format and emit a WARNING log message."""
    _emit(logger, LogLevel.WARNING, template, args, exc_info)


def log_error(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Format and emit an ERROR log message.

    Store failures are reported through this helper at the boundary of each
    public operation, with ``exc_info`` carrying the original exception.
    """
    _emit(logger, LogLevel.ERROR, template, args, exc_info)


__all__ = (
    "LogLevel",
    "configure_logging",
    "get_logger",
    "log_debug",
    "log_error",
    "log_info",
    "log_warning",
)
