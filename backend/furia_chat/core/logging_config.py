"""
Centralized logging configuration for the ChatFurioso backend.

This module provides:
- Console output with colored formatting
- File output with JSON structured logging (rotating)
- A session-aware logger adapter for the chat pipeline
- Masking of secrets (API keys, tokens) before they reach a log line
"""

import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


SENSITIVE_KEYS = ['password', 'token', 'secret', 'authorization', 'api_key', 'api-key', 'apikey']
FILTERED = "***FILTERED***"

# Gemini takes the API key as the "key" query parameter
_KEY_QUERY_PARAM = re.compile(r"([?&]key=)[^&\s]+", re.IGNORECASE)


class ColoredFormatter(logging.Formatter):
    """Custom formatter to add colors to console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    def format(self, record: logging.LogRecord) -> str:
        level_color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        original_levelname = record.levelname
        record.levelname = f"{level_color}{record.levelname:8s}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            # Other handlers (the JSON file) must see the plain level name
            record.levelname = original_levelname


class JSONFormatter(logging.Formatter):
    """Outputs one JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": redact_url_secrets(record.getMessage()),
        }

        if hasattr(record, 'extra_fields'):
            log_data.update(filter_sensitive_data(record.extra_fields))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(config: Any) -> None:
    """
    Setup logging configuration for the application.

    Args:
        config: Settings object with logging configuration
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if config.log_console_enabled:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(ColoredFormatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        root_logger.addHandler(console_handler)

    if config.log_file_enabled:
        log_path = Path(config.log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # 10MB per file, keep 5 backups
        file_handler = logging.handlers.RotatingFileHandler(
            filename=config.log_file_path,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)

        if config.log_json_format:
            file_formatter = JSONFormatter()
        else:
            file_formatter = logging.Formatter(
                "%(asctime)s | %(levelname)s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            )

        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    # httpx logs full request URLs at INFO, and ours carry the API key
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    root_logger.info(
        f"Logging initialized: level={config.log_level.upper()}, "
        f"console={config.log_console_enabled}, "
        f"file={config.log_file_enabled}"
    )


class SessionLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that attaches the chat session to every record.

    Usage:
        log = SessionLoggerAdapter(logging.getLogger(__name__), {"session_uuid": "abc"})
        log.info("Turn saved")  # JSON logs include session_uuid
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.setdefault('extra', {})
        extra['extra_fields'] = {**self.extra, **extra.get('extra_fields', {})}
        return msg, kwargs


def filter_sensitive_data(data: Any, sensitive_keys: Optional[list] = None) -> Any:
    """
    Mask sensitive values in dicts/lists before logging.

    Args:
        data: Data to filter (dict, list, or primitive)
        sensitive_keys: Key fragments to mask (defaults to SENSITIVE_KEYS)

    Returns:
        Filtered data with sensitive values replaced by "***FILTERED***"
    """
    if sensitive_keys is None:
        sensitive_keys = SENSITIVE_KEYS

    if isinstance(data, dict):
        return {
            key: FILTERED if any(sensitive in str(key).lower() for sensitive in sensitive_keys)
            else filter_sensitive_data(value, sensitive_keys)
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [filter_sensitive_data(item, sensitive_keys) for item in data]
    elif isinstance(data, str):
        return redact_url_secrets(data)
    else:
        return data


def redact_url_secrets(text: str) -> str:
    """Mask the value of a ``key=`` query parameter inside a URL or message."""
    return _KEY_QUERY_PARAM.sub(rf"\g<1>{FILTERED}", text)


def truncate_large_data(data: str, max_length: int = 5000) -> str:
    """Truncate large strings to keep log lines bounded."""
    if len(data) <= max_length:
        return data
    return data[:max_length] + f"... (truncated, total length: {len(data)})"
