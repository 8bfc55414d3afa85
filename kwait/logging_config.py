#  Kube Wait - Logging Configuration
#
#  Configures structured logging with JSON or text format.
#  Provides a context variable for wait_id propagation.
#
#  Depends on: (none)
#  Used by:    services/waiter.py, applications embedding kwait

import contextvars
import json
import logging
import sys
import time

# Context variable for per-wait tracing
wait_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("wait_id", default=None)


def set_wait_id(wid: str | None) -> contextvars.Token:
    """Bind wid to the current context.

    Returns the token; the caller passes it to wait_id_var.reset() when the
    wait ends so an outer wait_id (or None) is restored.
    """
    return wait_id_var.set(wid)


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON with context variables."""

    converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        wid = wait_id_var.get(None)
        if wid:
            entry["wait_id"] = wid
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


_TEXT_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure structured logging for kwait.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        fmt: Log format, "json" for structured output, "text" for human-readable.
    """
    root = logging.getLogger("kwait")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        if fmt == "json":
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%H:%M:%S"))
        root.addHandler(handler)

    # Quiet noisy libraries
    logging.getLogger("kubernetes").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
