"""Logging for the assistant core, backed by structlog.

Components never build structlog loggers themselves: they take an
optional injected ``LoggerProtocol`` and call ``get_component_logger``.
Inside ``session_scope`` every line carries the session id.

Usage:
    from assistant_core.utils.logging import configure_from_settings, get_component_logger

    configure_from_settings(get_settings())
    logger = get_component_logger("CommandExecutor")
    logger.info("command_batch_completed", success=3, failed=0)
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Generator, List, Optional

import structlog

from assistant_core.protocols import LoggerProtocol

# Library loggers kept quiet unless overridden
QUIET_LOGGERS: Dict[str, str] = {
    "aiosqlite": "WARNING",
    "asyncio": "WARNING",
}

_current_logger: ContextVar[Optional[LoggerProtocol]] = ContextVar(
    "current_logger",
    default=None
)


class Logger:
    """LoggerProtocol over a structlog logger plus the context bound so far."""

    def __init__(
        self,
        base_logger: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self._base = base_logger or structlog.get_logger()
        self._context = dict(context or {})
        self._logger = self._base.bind(**self._context) if self._context else self._base

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._logger.debug(msg, **kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._logger.info(msg, **kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._logger.warning(msg, **kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._logger.error(msg, **kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        self._logger.exception(msg, **kwargs)

    def bind(self, **kwargs: Any) -> "Logger":
        return Logger(base_logger=self._base, context={**self._context, **kwargs})


def build_processors(json_output: bool) -> List[Any]:
    """structlog chain: JSON lines with structured tracebacks, or console."""
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    return processors


def configure_logging(
    level: str = "INFO",
    *,
    json_output: bool = True,
    component_levels: Optional[Dict[str, str]] = None,
    force: bool = False,
) -> None:
    """Configure stdlib logging and structlog.

    A second call is a no-op unless ``force`` is set.

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR)
        json_output: JSON lines when True, coloured console output otherwise
        component_levels: Per-logger level overrides on top of QUIET_LOGGERS
        force: Replace an existing configuration
    """
    if structlog.is_configured() and not force:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(message)s", stream=sys.stdout, force=force)

    for name, name_level in {**QUIET_LOGGERS, **(component_levels or {})}.items():
        logging.getLogger(name).setLevel(getattr(logging, name_level.upper(), log_level))

    structlog.configure(
        processors=build_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )


def configure_from_settings(settings: Any) -> None:
    """Configure logging from an ``AssistantSettings`` instance."""
    configure_logging(settings.log_level, json_output=settings.log_json)


def get_current_logger() -> LoggerProtocol:
    logger = _current_logger.get()
    if logger is None:
        return Logger()
    return logger


def set_current_logger(logger: LoggerProtocol) -> None:
    _current_logger.set(logger)


def get_component_logger(
    component: str,
    logger: Optional[LoggerProtocol] = None,
) -> LoggerProtocol:
    """Logger bound to ``component``: the injected one, else the context logger."""
    base_logger = logger or get_current_logger()
    return base_logger.bind(component=component)


@contextmanager
def session_scope(
    session_id: str,
    logger: Optional[LoggerProtocol] = None,
) -> Generator[LoggerProtocol, None, None]:
    """Bind ``session_id`` to every log line emitted inside the scope.

    The previous context logger is restored on exit.
    """
    scoped = (logger or get_current_logger()).bind(session_id=session_id)
    token = _current_logger.set(scoped)
    structlog.contextvars.bind_contextvars(session_id=session_id)
    try:
        yield scoped
    finally:
        structlog.contextvars.unbind_contextvars("session_id")
        _current_logger.reset(token)


__all__ = [
    "QUIET_LOGGERS",
    "build_processors",
    "configure_logging",
    "configure_from_settings",
    "get_component_logger",
    "Logger",
    "get_current_logger",
    "set_current_logger",
    "session_scope",
]
