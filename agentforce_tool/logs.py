"""Diagnostic logging: stderr plus an optional log-file mirror."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable  # noqa: TC003
from pathlib import Path  # noqa: TC003
from typing import Any

LOGGER_NAME = "agentforce_tool"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
REDACTED = "***REDACTED***"
_TRACEBACK_FORMATTER = logging.Formatter()


def redact(text: str, secrets: Iterable[str]) -> str:
    """Replace every known secret in ``text``, longest first."""
    for secret in sorted((s for s in secrets if s), key=len, reverse=True):
        text = text.replace(secret, REDACTED)
    return text


class RedactingFilter(logging.Filter):
    """Strip secrets from records before any handler formats them."""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self.secrets = {s for s in secrets if s}

    def add_secret(self, secret: str) -> None:
        if secret:
            self.secrets.add(secret)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        record.msg = redact(record.getMessage(), self.secrets)
        record.args = None
        if record.exc_info and not record.exc_text:
            record.exc_text = _TRACEBACK_FORMATTER.formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = redact(record.exc_text, self.secrets)
        if record.stack_info:
            record.stack_info = redact(record.stack_info, self.secrets)
        return True


def configure_logging(*, verbose: bool = False, stream: Any = None) -> logging.Logger:
    """Reset the package logger to a single stderr handler.

    Handlers from a previous call are removed so repeated invocations in one
    interpreter (tests) do not duplicate output.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    _attach(logger, handler)
    return logger


def mirror_to_file(logger: logging.Logger, path: Path) -> logging.Handler:
    """Duplicate every record the logger emits into ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    secrets: set[str] = set()
    for existing in logger.handlers:
        secrets.update(_redacting_filter(existing).secrets)
    _attach(logger, handler, secrets)
    return handler


def register_secret(logger: logging.Logger, secret: str) -> None:
    """Redact ``secret`` from everything the logger's handlers write."""
    for handler in logger.handlers:
        _redacting_filter(handler).add_secret(secret)


def _attach(logger: logging.Logger, handler: logging.Handler, secrets: Iterable[str] = ()) -> None:
    # Handler filters also see records propagated from child loggers.
    handler.addFilter(RedactingFilter(secrets))
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


def _redacting_filter(handler: logging.Handler) -> RedactingFilter:
    for log_filter in handler.filters:
        if isinstance(log_filter, RedactingFilter):
            return log_filter
    log_filter = RedactingFilter()
    handler.addFilter(log_filter)
    return log_filter
