"""
Structured logging for the rental booking service.

Every record is rendered as one JSON object carrying the request's
correlation ID, so a booking request can be followed from the HTTP layer
through the service and repository calls it triggers.
"""

import logging
import logging.handlers
import json
import os
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


correlation_id_context: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

# LogRecord attributes that are not user supplied ``extra`` fields
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "correlation_id", "taskName"}

# Libraries that log every statement or request at INFO
_NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "uvicorn.access",
    "asyncio",
)


class CorrelationIDFilter(logging.Filter):
    """Stamp the current correlation ID onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_context.get() or "unknown"
        return True


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON documents."""

    def __init__(self, service_name: str = "rental-booking-service"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, 'correlation_id', 'unknown'),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        extra = {
            key: value for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES
        }
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str, ensure_ascii=False)


class LoggingConfig:
    """Root logger setup: JSON to stdout, optionally mirrored to rotating files."""

    def __init__(self,
                 log_level: str = "INFO",
                 service_name: str = "rental-booking-service",
                 log_dir: Optional[str] = None,
                 max_file_size: int = 10 * 1024 * 1024,
                 backup_count: int = 5):
        """
        Args:
            log_level: Name of the root logging level
            service_name: Value of the ``service`` field on every entry
            log_dir: Directory for ``<service>.log`` and ``<service>-errors.log``;
                file output is disabled when omitted
            max_file_size: Rotation threshold in bytes
            backup_count: Rotated files to keep
        """
        self.log_level = logging.getLevelName(log_level.upper())
        if not isinstance(self.log_level, int):
            raise ValueError(f"Unknown log level: {log_level}")
        self.service_name = service_name
        self.log_dir = Path(log_dir) if log_dir else None
        self.max_file_size = max_file_size
        self.backup_count = backup_count

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        """Read LOG_LEVEL, SERVICE_NAME, LOG_DIR, LOG_MAX_FILE_SIZE and LOG_BACKUP_COUNT."""
        return cls(
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            service_name=os.getenv('SERVICE_NAME', 'rental-booking-service'),
            log_dir=os.getenv('LOG_DIR') or None,
            max_file_size=int(os.getenv('LOG_MAX_FILE_SIZE', str(10 * 1024 * 1024))),
            backup_count=int(os.getenv('LOG_BACKUP_COUNT', '5'))
        )

    def _handler(self, handler: logging.Handler, level: int) -> logging.Handler:
        handler.setLevel(level)
        handler.addFilter(CorrelationIDFilter())
        handler.setFormatter(JSONFormatter(service_name=self.service_name))
        return handler

    def _rotating_file(self, filename: str) -> logging.Handler:
        return logging.handlers.RotatingFileHandler(
            filename=self.log_dir / filename,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding='utf-8'
        )

    def setup_logging(self) -> None:
        """Replace the root logger's handlers with the configured ones."""
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        root_logger.setLevel(self.log_level)

        root_logger.addHandler(self._handler(logging.StreamHandler(sys.stdout), self.log_level))

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            root_logger.addHandler(
                self._handler(self._rotating_file(f"{self.service_name}.log"), self.log_level)
            )
            root_logger.addHandler(
                self._handler(self._rotating_file(f"{self.service_name}-errors.log"), logging.ERROR)
            )

        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_context.set(correlation_id)


def clear_correlation_id() -> None:
    correlation_id_context.set(None)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)


def setup_logging_from_env() -> LoggingConfig:
    """Configure the root logger from environment variables."""
    config = LoggingConfig.from_env()
    config.setup_logging()
    return config


def log_with_extra(logger: logging.Logger, level: int, message: str, *, stacklevel: int = 2, **extra) -> None:
    """Log a message with structured extra fields.

    ``stacklevel`` points the record's location at the caller, so helpers
    wrapping this one pass one more frame.
    """
    logger.log(level, message, extra=extra, stacklevel=stacklevel)


def log_database_operation(logger: logging.Logger, operation: str, table: str, **extra) -> None:
    """Debug-level trace of a repository query or write."""
    log_with_extra(
        logger,
        logging.DEBUG,
        f"Database {operation}: {table}",
        stacklevel=3,
        db_operation=operation,
        db_table=table,
        **extra
    )


def log_booking_event(logger: logging.Logger, event: str, booking_id: str, **extra) -> None:
    """Record a committed booking lifecycle event (created, status_changed)."""
    log_with_extra(
        logger,
        logging.INFO,
        f"Booking {event}: {booking_id}",
        stacklevel=3,
        booking_event=event,
        booking_id=booking_id,
        **extra
    )


def log_business_rule_violation(logger: logging.Logger, rule: str, details: str, **extra) -> None:
    """Record a request rejected by a booking rule."""
    log_with_extra(
        logger,
        logging.WARNING,
        f"Business rule violation: {rule} - {details}",
        stacklevel=3,
        business_rule=rule,
        violation_details=details,
        **extra
    )
