"""
Structured logging - JSON formatter and one-time setup.
Challenge: Full error detail goes to logs only, never to API responses.
"""

import json
import logging
from datetime import datetime, timezone

# Extra fields surfaced in JSON output when a log call passes them
_EXTRA_KEYS = ("path", "user_id", "listing_id", "slug", "error_code")


class JSONFormatter(logging.Formatter):
    """One JSON object per line (log shippers, containers)."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Configure the root logger. Safe to call more than once (app factory in tests)."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_marketplace", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._marketplace = True
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s"))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
