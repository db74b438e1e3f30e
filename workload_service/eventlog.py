"""Structured, append-only event log.

Each call renders one JSON line (``timestamp``, ``level``, ``message`` plus any
extra fields) that is appended to a file and mirrored to a live stream. The
file handler's lock serializes writers, so records from concurrent requests
never interleave, and every record is flushed before the next is written.

A failing file sink never reaches the caller: the failure is reported as an
error-level diagnostic on the live stream only.
"""

import logging
import sys

import structlog

from workload_service.errors import LogWriteError

_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
    structlog.processors.EventRenamer("message"),
    structlog.processors.JSONRenderer(sort_keys=True),
]


_LEVELS = ("info", "error")


class _PersistentSinkHandler(logging.FileHandler):
    def __init__(self, filename, on_failure):
        super().__init__(filename, mode="a", encoding="utf-8")
        self._on_failure = on_failure

    def handleError(self, record):
        self._on_failure(LogWriteError(self.baseFilename, sys.exc_info()[1]))


def _wrap(logger):
    return structlog.wrap_logger(
        logger,
        processors=_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=True,
    )


class EventLog:
    """Process-wide event sink writing to ``path`` and ``stream``.

    The file is opened (created if needed) on construction; call
    :meth:`close` on shutdown. If it cannot be opened, events go to
    ``stream`` only.
    """

    def __init__(self, path: str, stream=None, level: str = "INFO") -> None:
        self.path = path
        stream = sys.stdout if stream is None else stream

        self._live = logging.StreamHandler(stream)
        diagnostics = logging.Logger("workload_service.diagnostics", level)
        diagnostics.addHandler(self._live)
        self._diagnostics = _wrap(diagnostics)

        # Loggers built directly are not registered with the logging manager,
        # so every EventLog owns its handlers exclusively.
        events = logging.Logger("workload_service.events", level)
        try:
            self._sink = _PersistentSinkHandler(path, self._report_write_failure)
        except OSError as exc:
            self._sink = None
            self._report_write_failure(LogWriteError(path, exc))
        else:
            events.addHandler(self._sink)
        events.addHandler(self._live)
        self._events = _wrap(events)

    def log(self, level: str, message: str, **fields) -> None:
        if level not in _LEVELS:
            fields["requested_level"] = level
            level = "error"
        getattr(self._events, level)(message, **fields)

    def info(self, message: str, **fields) -> None:
        self.log("info", message, **fields)

    def error(self, message: str, **fields) -> None:
        self.log("error", message, **fields)

    def close(self) -> None:
        self._live.flush()
        if self._sink is not None:
            self._sink.close()

    def _report_write_failure(self, exc: LogWriteError) -> None:
        self._diagnostics.error("log write failed", path=exc.path, error=str(exc))
