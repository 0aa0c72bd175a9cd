"""Structured logging configuration for RAMS.

Workflow events (report transitions, sequence collisions, archived
PDFs) are logged with their identifiers as ``extra`` fields. The JSON
formatter emits them as top-level keys; the text formatter appends
them as ``key=value`` pairs.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .config import Settings, get_settings

SERVICE_NAME = "rams"

# Third-party loggers kept at WARNING unless SQL echo is requested
NOISY_LOGGERS = ("aiosqlite", "asyncpg", "httpx", "httpcore", "passlib", "multipart")

# Attributes present on every LogRecord; anything else came in via ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line, extras flattened into the top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(_extra_fields(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        if record.levelno >= logging.WARNING:
            log_data["location"] = f"{record.module}.{record.funcName}:{record.lineno}"

        return json.dumps(log_data, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for development; extras shown as key=value."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extra_fields(record)
        if not extras:
            return line
        pairs = " ".join(f"{k}={v}" for k, v in sorted(extras.items()))
        # Keep a traceback (if any) below the key=value suffix
        first, sep, rest = line.partition("\n")
        return f"{first} | {pairs}{sep}{rest}"


def setup_logging(settings: Settings | None = None) -> None:
    """Install a single stdout handler on the root logger.

    The formatter follows ``log_format``; ``database_echo`` lets SQL
    statements through at INFO.
    """
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if settings.log_format == "json" else TextFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )

    get_logger(__name__).debug(
        "Logging initialized",
        extra={"environment": settings.environment, "log_format": settings.log_format},
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """Adds fixed context fields to every record; call-site extras win."""

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_context_logger(name: str, **context: Any) -> LoggerAdapter:
    """Get a logger that tags every record with ``context``.

    Usage:
        logger = get_context_logger(__name__, component="pdf_archive")
        logger.info("Archived report")  # record carries component=pdf_archive
    """
    return LoggerAdapter(get_logger(name), context)


# =========================
# Workflow events
# =========================


def log_report_transition(
    report_id: str,
    report_number: str,
    from_status: str | None,
    to_status: str,
    actor_id: str,
) -> None:
    """Log a report lifecycle transition (``from_status`` is None on creation)."""
    get_logger("rams.workflow").info(
        f"Report {report_number}: {from_status or 'new'} -> {to_status}",
        extra={
            "event": "report_transition",
            "report_id": report_id,
            "report_number": report_number,
            "from_status": from_status,
            "to_status": to_status,
            "actor_id": actor_id,
        },
    )


def log_sequence_conflict(scope: str, value: int, attempt: int) -> None:
    """Log a sequence number collision that will be retried."""
    get_logger("rams.sequence").warning(
        f"Sequence collision in {scope} at {value} (attempt {attempt}), retrying",
        extra={
            "event": "sequence_conflict",
            "scope": scope,
            "value": value,
            "attempt": attempt,
        },
    )
