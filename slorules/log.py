"""Structured logging with key/value fields and context-bound values."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Mapping

_ctx_values: ContextVar[dict[str, Any]] = ContextVar("slorules_log_values", default={})


@contextmanager
def bind_values(values: Mapping[str, Any]) -> Iterator[dict[str, Any]]:
    """Bind log values to the current context for the duration of the block.

    Values already bound are kept; the new ones take precedence.
    """
    merged = {**_ctx_values.get(), **values}
    token = _ctx_values.set(merged)
    try:
        yield dict(merged)
    finally:
        _ctx_values.reset(token)


def current_values() -> dict[str, Any]:
    """Return a copy of the log values bound to the current context."""
    return dict(_ctx_values.get())


class Logger:
    """Logger interface; this base implementation discards everything."""

    def debug(self, msg: str, *args: Any) -> None:
        """Log a debug message."""

    def info(self, msg: str, *args: Any) -> None:
        """Log an informational message."""

    def warning(self, msg: str, *args: Any) -> None:
        """Log a warning message."""

    def error(self, msg: str, *args: Any) -> None:
        """Log an error message."""

    def with_values(self, values: Mapping[str, Any]) -> "Logger":
        """Return a logger that adds ``values`` to every message."""
        return self

    def with_ctx_values(self) -> "Logger":
        """Return a logger that adds the context-bound values to every message."""
        return self


class NoopLogger(Logger):
    """Logger that doesn't log anything."""


class StdLogger(Logger):
    """Logger backed by the standard :mod:`logging` module."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        values: Mapping[str, Any] | None = None,
    ) -> None:
        self._logger = logger if logger is not None else logging.getLogger("slorules")
        self._values: dict[str, Any] = dict(values or {})

    @property
    def values(self) -> dict[str, Any]:
        """The fields attached to every message."""
        return dict(self._values)

    def _emit(self, level: int, msg: str, args: tuple[Any, ...]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        text = msg % args if args else msg
        if self._values:
            fields = " ".join(f"{k}={v}" for k, v in sorted(self._values.items()))
            text = f"{text} {fields}"
        self._logger.log(level, "%s", text)

    def debug(self, msg: str, *args: Any) -> None:
        self._emit(logging.DEBUG, msg, args)

    def info(self, msg: str, *args: Any) -> None:
        self._emit(logging.INFO, msg, args)

    def warning(self, msg: str, *args: Any) -> None:
        self._emit(logging.WARNING, msg, args)

    def error(self, msg: str, *args: Any) -> None:
        self._emit(logging.ERROR, msg, args)

    def with_values(self, values: Mapping[str, Any]) -> "StdLogger":
        return StdLogger(self._logger, {**self._values, **values})

    def with_ctx_values(self) -> "StdLogger":
        return self.with_values(current_values())