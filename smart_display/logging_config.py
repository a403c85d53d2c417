"""
Centralized Logging Configuration

Provides consistent logging configuration across the SmartDisplay service.
Supports structured logging with context information and appropriate log levels.
"""

import logging
import sys
import os
import json
from typing import Optional, Dict, Any
from datetime import datetime


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Add extra context if present
        if hasattr(record, 'context'):
            log_data['context'] = record.context

        if hasattr(record, 'component'):
            log_data['component'] = record.component

        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    """Human-readable formatter with context information."""

    def __init__(self, include_context: bool = True, include_location: bool = False):
        """
        Initialize formatter.

        Args:
            include_context: Include context information in log messages
            include_location: Include module/function/line information
        """
        if include_location:
            fmt = '%(asctime)s.%(msecs)03d - %(levelname)s - %(name)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s'
        else:
            fmt = '%(asctime)s.%(msecs)03d - %(levelname)s - %(name)s - %(message)s'

        super().__init__(fmt=fmt, datefmt='%Y-%m-%d %H:%M:%S')
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with context."""
        message = super().format(record)
        if not self.include_context:
            return message

        context_parts = []
        if hasattr(record, 'component'):
            context_parts.append(f"[{record.component}]")
        if hasattr(record, 'context') and isinstance(record.context, dict):
            for key, value in record.context.items():
                context_parts.append(f"[{key}: {value}]")

        if context_parts:
            message = f"{message} {' '.join(context_parts)}"
        return message


def setup_logging(
    level: Optional[int] = None,
    format_type: str = 'readable',
    include_location: bool = False,
    log_file: Optional[str] = None
) -> None:
    """
    Set up centralized logging configuration.

    Args:
        level: Log level (defaults to INFO, or DEBUG if SMART_DISPLAY_DEBUG is set)
        format_type: 'readable' for human-readable, 'json' for structured JSON
        include_location: Include module/function/line in readable format
        log_file: Optional file path for file logging
    """
    if level is None:
        if os.environ.get('SMART_DISPLAY_DEBUG', '').lower() == 'true':
            level = logging.DEBUG
        else:
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    if format_type == 'json':
        formatter = StructuredFormatter()
    else:
        formatter = ContextualFormatter(include_context=True, include_location=include_location)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except (IOError, OSError, PermissionError) as e:
            # Log to stderr since file logging failed
            sys.stderr.write(f"Warning: Could not set up file logging to {log_file}: {e}\n")

    # werkzeug logs every polling request at INFO
    if level > logging.DEBUG:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with consistent configuration.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    context: Optional[Dict[str, Any]] = None,
    component: Optional[str] = None,
    exc_info: Optional[Any] = None
) -> None:
    """
    Log a message with context information.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, logging.ERROR, etc.)
        message: Log message
        context: Optional context dictionary
        component: Optional component name (scheduler, sensor, image_cache, ...)
        exc_info: Optional exception info for error logging
    """
    extra = {}

    if context:
        extra['context'] = context

    if component:
        extra['component'] = component

    logger.log(level, message, extra=extra, exc_info=exc_info)


def log_info(logger: logging.Logger, message: str, **kwargs) -> None:
    """Log info message with context."""
    log_with_context(logger, logging.INFO, message, **kwargs)


def log_warning(logger: logging.Logger, message: str, **kwargs) -> None:
    """Log warning message with context."""
    log_with_context(logger, logging.WARNING, message, **kwargs)


def log_config_change(
    logger: logging.Logger,
    config_key: str,
    action: str,
    before: Optional[Any] = None,
    after: Optional[Any] = None,
    context: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log a configuration change with before/after values.

    Args:
        logger: Logger instance
        config_key: Configuration key that changed
        action: Action performed (update, add, remove, rotate)
        before: Value before change
        after: Value after change
        context: Optional additional context
    """
    change_context = dict(context or {})
    if before is not None:
        change_context['before'] = before
    if after is not None:
        change_context['after'] = after

    log_with_context(
        logger,
        logging.INFO,
        f"Config change: {action} on {config_key}",
        context=change_context or None,
        component='config'
    )
