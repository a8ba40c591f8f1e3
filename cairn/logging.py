"""Logging helpers for femtologging integration.

Cairn emits pre-formatted, percent-interpolated messages through femtologging.
Lifecycle events append ``key=value`` fields so log aggregators can parse them
without a structured handler.

Example:
>>> from cairn.logging import get_logger, log_info
>>> logger = get_logger(__name__)
>>> log_info(logger, "Committed %d locations", 3)

"""

from __future__ import annotations

import enum
import typing as typ

from femtologging import basicConfig, get_logger


class LogLevel(enum.StrEnum):
    """Log levels accepted by femtologging."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Normalize a log level string and report invalid inputs.

    Parameters
    ----------
    level : str | None
        Raw log level, typically read from ``CAIRN_LOG_LEVEL``.

    Returns
    -------
    tuple[str, bool]
        The normalized level (``INFO`` when unusable) and whether the input
        was rejected.

    """
    if not level:
        return ("INFO", True)

    candidate = level.strip().upper()
    if candidate in LogLevel.__members__:
        return (candidate, False)
    return ("INFO", True)


def configure_logging(level: str | None, *, force: bool = False) -> tuple[str, bool]:
    """Install the femtologging root configuration at ``level``."""
    normalized, invalid = normalize_log_level(level)
    basicConfig(level=normalized, force=force)
    return (normalized, invalid)


def format_fields(**fields: object) -> str:
    """Render keyword fields as space-separated ``key=value`` pairs.

    Keys are emitted in call order; ``None`` values render as ``None`` so the
    field stays visible to parsers.

    Examples
    --------
    >>> format_fields(provider="bitbucketCloud-provider:default", count=2)
    'provider=bitbucketCloud-provider:default count=2'

    """
    return " ".join(f"{key}={value}" for key, value in fields.items())


class _SupportsLog(typ.Protocol):
    """Protocol for femtologging-compatible loggers."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def _emit(
    logger: _SupportsLog,
    level: LogLevel,
    template: str,
    args: tuple[object, ...],
    exc_info: object | None,
) -> None:
    # femtologging takes finished messages, so interpolate eagerly.
    message = template % args if args else template
    logger.log(level.value, message, exc_info=exc_info, stack_info=False)


def log_debug(
    logger: _SupportsLog, template: str, *args: object, exc_info: object | None = None
) -> None:
    """Emit ``template % args`` at DEBUG."""
    _emit(logger, LogLevel.DEBUG, template, args, exc_info)


def log_info(
    logger: _SupportsLog, template: str, *args: object, exc_info: object | None = None
) -> None:
    """Emit ``template % args`` at INFO.

    Parameters
    ----------
    logger : _SupportsLog
        Destination logger, usually one returned by :func:`get_logger`.
    template : str
        Percent-style template; left untouched when no ``args`` are given,
        so literal ``%`` characters survive.
    *args : object
        Interpolation values.
    exc_info : object | None, optional
        Exception to attach to the record.

    """
    _emit(logger, LogLevel.INFO, template, args, exc_info)


def log_warning(
    logger: _SupportsLog, template: str, *args: object, exc_info: object | None = None
) -> None:
    """Emit ``template % args`` at WARNING."""
    _emit(logger, LogLevel.WARNING, template, args, exc_info)


def log_error(
    logger: _SupportsLog, template: str, *args: object, exc_info: object | None = None
) -> None:
    """Emit ``template % args`` at ERROR, attaching ``exc_info`` if given."""
    _emit(logger, LogLevel.ERROR, template, args, exc_info)


__all__ = [
    "LogLevel",
    "configure_logging",
    "format_fields",
    "get_logger",
    "log_debug",
    "log_error",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
