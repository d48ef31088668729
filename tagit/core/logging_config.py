"""Logging setup: one stdout handler, JSON lines or plain text.

Records carry the name of the open managed folder, taken from ``folder_var``.
"""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from .config import LogFormat, settings

# Set when a Library opens a managed folder
folder_var: contextvars.ContextVar[str] = contextvars.ContextVar("managed_folder", default="")

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(folder)s] %(name)s: %(message)s"


class _FolderFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.folder = folder_var.get() or "-"
        return True


class _JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra`` keys sit beside the standard ones."""

    _RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys())

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if folder_var.get():
            payload["folder"] = folder_var.get()
        payload.update(
            (k, v) for k, v in record.__dict__.items()
            if k not in self._RESERVED and k not in payload
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Install the handler on the root logger. Unset arguments come from settings."""
    level = (log_level or settings.log_level).upper()
    fmt = LogFormat((log_format or settings.log_format).lower())

    handler = logging.StreamHandler(sys.stdout)
    if fmt == LogFormat.JSON:
        handler.setFormatter(_JsonFormatter())
    else:
        handler.addFilter(_FolderFilter())
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # SQL statements only at WARNING and above
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging configured", extra={"level": level, "format": fmt.value})
