"""Guardian - Structured Logging.

JSON lines by default; ``LOG_FORMAT=text`` switches to a compact
human-readable form for local runs. Logs go to stderr so that CLI output on
stdout stays machine-readable.
"""

import logging
import json
import sys
from datetime import datetime, timezone

from guardian.config import get_settings

CONTEXT_KEYS = ("campaign_id", "proposal_id", "checkpoint", "duration_ms")


class JSONFormatter(logging.Formatter):
    """Produces structured JSON log lines for production observability."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key in CONTEXT_KEYS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)
        return json.dumps(log_entry, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """``LEVEL logger: message [key=value ...]``"""

    def format(self, record: logging.LogRecord) -> str:
        context = " ".join(
            f"{key}={getattr(record, key)}" for key in CONTEXT_KEYS if hasattr(record, key)
        )
        line = f"{record.levelname:<7} {record.name}: {record.getMessage()}"
        return f"{line} [{context}]" if context else line


def get_logger(name: str) -> logging.Logger:
    """Return a named ``guardian.*`` logger with the configured formatter."""
    settings = get_settings()
    logger = logging.getLogger(f"guardian.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            TextFormatter() if settings.log_format == "text" else JSONFormatter()
        )
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger
