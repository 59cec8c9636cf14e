"""JSON logging for the API process.

Every record carries the id of the request being served (when there is
one), so attempt lifecycle events can be correlated with access logs.
"""

import logging
import logging.config
from contextvars import ContextVar
from typing import Any

from pythonjsonlogger import jsonlogger

from quizdesk.core.config import settings

# Set by RequestIDMiddleware for the duration of a request
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


class QuizDeskJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per line: timestamp, level, logger, event, extras."""

    def add_fields(
        self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record.setdefault("event", record.getMessage())
        log_record.setdefault("env", settings.ENV)

        request_id = request_id_var.get()
        if request_id and "request_id" not in log_record:
            log_record["request_id"] = request_id

        log_record.pop("message", None)
        log_record.pop("asctime", None)


def _logging_config() -> dict[str, Any]:
    level = settings.LOG_LEVEL.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": QuizDeskJsonFormatter,
                "fmt": "%(timestamp)s %(level)s %(logger)s %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
            }
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "json",
            }
        },
        "root": {"level": level, "handlers": ["stdout"]},
        "loggers": {
            # Request logging is done by RequestIDMiddleware
            "uvicorn.access": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "INFO" if settings.DATABASE_ECHO else "WARNING"},
        },
    }


def setup_logging() -> None:
    """Configure application logging."""
    logging.config.dictConfig(_logging_config())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
