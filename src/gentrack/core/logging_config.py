"""Central logging configuration utilities.

A single composition-root driven `configure_logging` wires separate
stdout/stderr sinks and injects a correlation id into all log records.
Adapters and domain code never mutate global logging; they only emit via
`LoggingPort` or standard module loggers. Uvicorn is kept from stomping the
configuration by passing `log_config=None` (or the dict produced by
`generate_uvicorn_log_config`) in `main`.

Correlation ids come from two places: the HTTP middleware sets one per request
(`X-Request-ID` header or a short uuid), and the poll scheduler sets
`tick-<n>` while a tick runs so every probe and callback line of that tick can
be grepped together.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional
import contextvars

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default="-"
)

DEFAULT_FORMAT = (
    "[%(asctime)s] %(levelname)s %(name)s %(correlation_id)s: %(message)s"
)


def coerce_level(level: int | str | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    key = str(level).upper().strip()
    return logging.getLevelNamesMapping().get(key, logging.INFO)


class _CorrelationIdFilter(logging.Filter):
    """Inject correlation id from contextvar into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - simple
        record.correlation_id = correlation_id_var.get()
        return True


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover
        return record.levelno <= self.max_level


def configure_logging(
    level: int | str | None = None,
    fmt: Optional[str] = None,
    disable_uvicorn_access: bool = False,
) -> None:
    """Configure root logger with separate stdout/stderr sinks & correlation id.

    Notes
    -----
    * Records below WARNING go to stdout, WARNING and above to stderr.
    * Access log suppression achieved by raising level on `uvicorn.access`.
    """
    numeric_level = coerce_level(level)
    formatter = logging.Formatter(fmt or DEFAULT_FORMAT)

    root = logging.getLogger()
    root.setLevel(numeric_level)

    # Clear existing handlers to avoid duplication on reload
    for h in list(root.handlers):
        root.removeHandler(h)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(numeric_level)
    stdout_handler.addFilter(_MaxLevelFilter(logging.INFO))
    stdout_handler.addFilter(_CorrelationIdFilter())
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(max(numeric_level, logging.WARNING))
    stderr_handler.addFilter(_CorrelationIdFilter())
    stderr_handler.setFormatter(formatter)

    root.addHandler(stdout_handler)
    root.addHandler(stderr_handler)

    if disable_uvicorn_access:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.getLogger("gentrack").debug(
        "Logging configured level=%s disable_uvicorn_access=%s", numeric_level, disable_uvicorn_access
    )


def generate_uvicorn_log_config(level: int | str | None) -> dict:
    """Return a uvicorn-compatible log_config dict sharing our format.

    uvicorn normally reconfigures logging when run(); this keeps its loggers on
    the correlation id format and lets them propagate to our root handlers.
    """
    numeric_level = coerce_level(level)
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "loggers": {
            "uvicorn": {"level": numeric_level, "propagate": True},
            "uvicorn.error": {"level": numeric_level, "propagate": True},
            "uvicorn.access": {"level": numeric_level, "propagate": True},
        },
    }
