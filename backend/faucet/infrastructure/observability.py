"""Structured Logging — one line per event, claim context attached.

Invariants:
    - Every line has timestamp, level, logger and message
    - Claim context passed via `extra=` (address, reason, tx_hash, failure_type,
      attempt, error_code, path) is emitted whenever present, in both formats
    - setup_logging() is idempotent: a second lifespan (tests, --reload)
      replaces the faucet handler instead of stacking another

Design Decisions:
    - stdlib logging + a small formatter, no logging dependency
    - httpx logs every request at INFO; held at WARNING so relay retries are
      reported once, by the disbursement client, with the claim's address
"""

import json
import logging
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "address", "reason", "tx_hash", "failure_type", "attempt",
    "error_code", "path",
)
_QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def _context(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in CONTEXT_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False, default=str)


class ContextFormatter(logging.Formatter):
    """Human-readable format with the claim context as trailing key=value pairs."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record)
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else ContextFormatter())
    handler.set_name("faucet")

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == "faucet":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
