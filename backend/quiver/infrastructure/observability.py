"""Structured Logging: JSON log lines tagged with the round and caller they concern.

Invariants:
    - Every line carries timestamp (record creation time, UTC), level, logger,
      service and message
    - Round context (round_id, user_id, participant_id, error_code, path, status)
      is surfaced only when the call site passed it via extra=
    - setup_logging() is idempotent: re-running the lifespan never duplicates output
    - SQLAlchemy engine chatter stays at WARNING regardless of the app level
"""

import logging
import json
from datetime import datetime, timezone

SERVICE_NAME = "quiver-api"

EXTRA_FIELDS: tuple[str, ...] = (
    "round_id", "user_id", "participant_id", "error_code", "path", "status",
)


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = str(val)
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


class _QuiverHandler(logging.StreamHandler):
    """Marker type so setup_logging() can find its own handler."""


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure the root logger. fmt is "json" or anything else for plain text."""
    handler = _QuiverHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    for existing in [h for h in logging.root.handlers if isinstance(h, _QuiverHandler)]:
        logging.root.removeHandler(existing)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
