"""Logging utilities.

Records carry the job they belong to and the pipeline phase (with the section index while
a section is being written or illustrated). Structured fields passed through ``extra=``
are rendered after the message as ``key=value`` pairs.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
from typing import Any, Iterator, Mapping

from rich.logging import RichHandler

_HANDLER_NAME = "papersmith"

_log_context: contextvars.ContextVar[Mapping[str, str]] = contextvars.ContextVar(
    "papersmith_log_context", default={}
)

# Attributes every LogRecord has; anything else on a record came from `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "job", "phase"}


class ContextFilter(logging.Filter):
    """Stamp the current job and phase on each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        ctx = _log_context.get()
        record.job = ctx.get("job", "-")  # type: ignore[attr-defined]
        record.phase = ctx.get("phase", "-")  # type: ignore[attr-defined]
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter that appends the record's ``extra=`` fields, sorted by key."""

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        text = super().formatMessage(record)
        fields = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if not fields:
            return text
        rendered = " ".join(f"{key}={fields[key]!r}" for key in sorted(fields))
        return f"{text} | {rendered}"


@contextlib.contextmanager
def job_context(*, job_id: str, phase: str | None = None) -> Iterator[None]:
    """Bind `job_id` (and optionally `phase`) to every record logged inside the block."""

    token = _log_context.set({"job": job_id, "phase": phase or "-"})
    try:
        yield
    finally:
        _log_context.reset(token)


def set_phase(phase: str, *, section_index: int | None = None) -> None:
    """Update the phase of the current job context, e.g. ``content[2]``."""

    label = phase if section_index is None else f"{phase}[{section_index}]"
    _log_context.set({**_log_context.get(), "phase": label})


def configure_logging(level: str = "INFO") -> None:
    """Install the rich console handler on the root logger.

    Safe to call repeatedly (CLI invocations, app factories in tests): the previously
    installed handler is replaced, never duplicated.
    """

    handler = RichHandler(rich_tracebacks=True, show_time=True, show_level=True)
    handler.set_name(_HANDLER_NAME)
    handler.addFilter(ContextFilter())
    handler.setFormatter(StructuredFormatter("job=%(job)s phase=%(phase)s %(name)s: %(message)s"))

    root = logging.getLogger()
    root.setLevel(level.upper())
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)

    # The SDK's transport logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_exception(logger: logging.Logger, msg: str, **context: Any) -> None:
    """Log the active exception; `context` is rendered like any other ``extra=`` field."""

    logger.exception(msg, extra=context)
