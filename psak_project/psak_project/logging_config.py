"""
Logging configuration for the ledger service.

- Development: human-readable console output
- Production: JSON lines to stdout

Environment variables:
- LOG_FORMAT: "json" or "console" (default: json unless DEBUG)
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
"""
import json
import logging
import os
from datetime import datetime, timezone


def get_logging_config(debug: bool = False) -> dict:
    """Build the Django LOGGING dict."""
    log_level = os.environ.get("LOG_LEVEL", "DEBUG" if debug else "INFO")
    log_format = os.environ.get("LOG_FORMAT", "console" if debug else "json")

    config = {
        "version": 1,
        "disable_existing_loggers": False,
    }

    if log_format == "json":
        config["formatters"] = {
            "json": {"()": "psak_project.logging_config.JsonFormatter"},
        }
        console_formatter = "json"
    else:
        config["formatters"] = {
            "verbose": {
                "format": "[{asctime}] {levelname} {name} {message}",
                "style": "{",
            },
        }
        console_formatter = "verbose"

    config["handlers"] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": console_formatter,
        },
        "null": {"class": "logging.NullHandler"},
    }

    config["loggers"] = {
        "": {"handlers": ["console"], "level": log_level},
        "django": {
            "handlers": ["console"],
            "level": log_level,
            "propagate": False,
        },
        "django.db.backends": {
            "handlers": ["console"] if debug else ["null"],
            "level": "DEBUG" if debug else "INFO",
            "propagate": False,
        },
        "ledger_core": {
            "handlers": ["console"],
            "level": log_level,
            "propagate": False,
        },
        # Integrity alarms are never filtered by LOG_LEVEL
        "ledger_core.integrity": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
        "celery": {
            "handlers": ["console"],
            "level": log_level,
            "propagate": False,
        },
    }
    return config


class JsonFormatter(logging.Formatter):
    """One JSON object per log line, with any `extra=` fields attached."""

    standard_attrs = {
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "lineno", "funcName", "created",
        "msecs", "relativeCreated", "thread", "threadName",
        "processName", "process", "exc_info", "exc_text", "stack_info",
        "message", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extras = {}
        for key, value in record.__dict__.items():
            if key in self.standard_attrs:
                continue
            try:
                json.dumps(value)
                extras[key] = value
            except (TypeError, ValueError):
                extras[key] = str(value)
        if extras:
            log_entry["extra"] = extras

        return json.dumps(log_entry, default=str)
