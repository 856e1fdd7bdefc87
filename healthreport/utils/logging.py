"""
Report Engine Logging

One line per event, tagged with the assessment session it concerns:

    [2025-04-02T16:05:00+00:00] INFO     [healthreport.core.reports.pipeline] [session_003] PDF generated ...

Session context travels on the record (``extra={"session_id": ...}``), so
the pipeline and service log through ``session_logger`` instead of
formatting the id into every message.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping, Optional, Tuple

_HANDLER_TAG = "_healthreport"

LEVEL_COLORS = {
    'DEBUG': '\033[36m',
    'INFO': '\033[32m',
    'WARNING': '\033[33m',
    'ERROR': '\033[31m',
    'CRITICAL': '\033[35m',
}
RESET = '\033[0m'


class StructuredFormatter(logging.Formatter):
    """Timestamp, level, logger name, optional session tag, then the message."""

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="seconds")
        parts = [f"[{timestamp}]", f"{record.levelname:8}", f"[{record.name}]"]

        session_id = getattr(record, "session_id", None)
        if session_id:
            parts.append(f"[{session_id}]")
        parts.append(record.getMessage())

        line = " ".join(parts)
        if self.use_color and record.levelname in LEVEL_COLORS:
            line = f"{LEVEL_COLORS[record.levelname]}{line}{RESET}"
        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


class SessionLogAdapter(logging.LoggerAdapter):
    """Attaches a session id to every record logged through it."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def session_logger(logger: logging.Logger, session_id: str) -> SessionLogAdapter:
    return SessionLogAdapter(logger, {"session_id": session_id})


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure application-wide logging.

    Repeat calls replace the handlers installed by earlier ones; handlers
    added by anything else (pytest's capture, uvicorn) are left alone.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for a colourless copy of the output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root_logger.removeHandler(handler)
            handler.close()

    handlers = [logging.StreamHandler(sys.stdout)]
    handlers[0].setFormatter(StructuredFormatter(use_color=sys.stdout.isatty()))
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter(use_color=False))
        handlers.append(file_handler)

    for handler in handlers:
        setattr(handler, _HANDLER_TAG, True)
        root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Module logger (typically ``get_logger(__name__)``)."""
    return logging.getLogger(name)
