"""
Production Logging Configuration
Structured logging for production deployment
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

REQUEST_FIELDS = ("request_id", "language", "card_mode")


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging in production.
    Compatible with log aggregation tools (ELK, CloudWatch, etc.)
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for name in REQUEST_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        return json.dumps(log_data, ensure_ascii=False)


def setup_production_logging(
    level: str = "INFO",
    json_format: bool = True
) -> None:
    """
    Configure logging for production environment.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format for structured logging
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))

    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


class RequestLogger:
    """
    Context-aware logger for tracking a single card request.
    """

    def __init__(self, request_id: str, language: Optional[str] = None, card_mode: Optional[str] = None):
        self.request_id = request_id
        self.language = language
        self.card_mode = card_mode
        self.logger = logging.getLogger("card_requests")

    def _make_record(self, level: int, msg: str, exc_info=None) -> None:
        if not self.logger.isEnabledFor(level):
            return
        record = self.logger.makeRecord(
            self.logger.name,
            level,
            "", 0, msg, (), exc_info
        )
        record.request_id = self.request_id
        record.language = self.language
        record.card_mode = self.card_mode
        self.logger.handle(record)

    def info(self, msg: str) -> None:
        self._make_record(logging.INFO, msg)

    def warning(self, msg: str) -> None:
        self._make_record(logging.WARNING, msg)

    def error(self, msg: str, exc_info: bool = False) -> None:
        self._make_record(logging.ERROR, msg, sys.exc_info() if exc_info else None)


def init_logging(environment: str = "development", debug: bool = True, level: str = "INFO") -> None:
    """Initialize logging based on environment"""
    if environment == "production":
        setup_production_logging(level=level, json_format=True)
    else:
        setup_production_logging(level="DEBUG" if debug else level, json_format=False)
