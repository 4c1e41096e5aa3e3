"""Logging setup: colored console lines plus a JSON-lines file per day."""

import logging
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional


# Extra record attributes copied into structured output
CONTEXT_FIELDS = ('stack_id', 'resource_id', 'resource_type', 'operation')


def resource_label(record: logging.LogRecord) -> Optional[str]:
    """Construct path of the resource a record is about, if any."""
    resource_id = getattr(record, 'resource_id', None)
    if resource_id is None:
        return None
    stack_id = getattr(record, 'stack_id', None)
    return f"{stack_id}/{resource_id}" if stack_id else str(resource_id)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with any resource context attached."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.utcnow().isoformat() + 'Z',
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output.

    Lines look like ``12:00:01 INFO     [Billing/Monthly] Created price_123``.
    Level names are colored only when ``use_color`` is set.
    """

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.utcnow().strftime('%H:%M:%S')
        level = f"{record.levelname:8}"
        if self.use_color and record.levelname in self.COLORS:
            level = f"{self.COLORS[record.levelname]}{level}{self.RESET}"

        message = record.getMessage()
        label = resource_label(record)
        if label:
            message = f"[{label}] {message}"

        return f"{timestamp} {level} {message}"


def setup_logging(log_level: str = 'info', log_dir: Optional[str] = '.pricectl/logs') -> None:
    """Setup logging infrastructure.

    Args:
        log_level: Logging level (debug, info, warning, error)
        log_dir: Directory for JSON log files, or None to log to the console only
    """
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(ConsoleFormatter(use_color=sys.stderr.isatty()))
    root_logger.addHandler(console_handler)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        # File handler with JSON format
        log_file = log_path / f"pricectl-{datetime.utcnow().strftime('%Y%m%d')}.jsonl"
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log debug to file
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)
        # The file handler wants everything, so let DEBUG records through the root
        root_logger.setLevel(logging.DEBUG)

    # Reduce noise from the Stripe SDK and its HTTP stack
    logging.getLogger('stripe').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """Attach resource fields to every record logged inside the block.

    Contexts nest: the record factory in place on entry is restored on exit.
    """

    def __init__(self, logger: logging.Logger, **fields: Any):
        self.logger = logger
        self.fields = fields
        self.old_factory = None

    def __enter__(self):
        old_factory = logging.getLogRecordFactory()
        fields = self.fields

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            for key, value in fields.items():
                setattr(record, key, value)
            return record

        self.old_factory = old_factory
        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.old_factory is not None:
            logging.setLogRecordFactory(self.old_factory)
            self.old_factory = None
