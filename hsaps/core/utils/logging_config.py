"""
Logging setup for HSAPS.

Every module logs through the standard `logging` tree under the `hsaps.`
prefix. `setup_logging()` attaches one stdout handler to the `hsaps` logger:
one JSON object per line when LOG_FORMAT=json (or PRODUCTION=true), a short
colored line otherwise.

Extra fields attached with LogContext (submission_id, effect, ...) are
rendered by both formatters.
"""

import os
import sys
import json
import logging
from datetime import datetime, timezone

ROOT_LOGGER = 'hsaps'

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ('apscheduler', 'urllib3', 'PIL', 'fpdf')


def _extra_fields(record):
    return dict(getattr(record, 'extra', None) or {})


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'ts': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'msg': record.getMessage(),
            'where': f'{record.module}.{record.funcName}:{record.lineno}',
        }
        entry.update(_extra_fields(record))
        if record.exc_info:
            entry['exc'] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """`HH:MM:SS LEVEL logger: message | k=v` with a colored level."""

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, color=True):
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        level = f'{record.levelname:<7}'
        if self.color and record.levelname in self.LEVEL_COLORS:
            level = f'{self.LEVEL_COLORS[record.levelname]}{level}{self.RESET}'
        when = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')
        line = f'{when} {level} {record.name}: {record.getMessage()}'

        extras = _extra_fields(record)
        if extras:
            line += ' | ' + ' '.join(f'{k}={v}' for k, v in extras.items())
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def _use_json():
    fmt = os.environ.get('LOG_FORMAT', '').lower()
    if fmt:
        return fmt == 'json'
    return os.environ.get('PRODUCTION', '').lower() == 'true'


def setup_logging(level: str = None, json_format: bool = None) -> logging.Logger:
    """Configure the `hsaps` logger tree and return its root.

    Args:
        level: Log level name; defaults to LOG_LEVEL or INFO.
        json_format: Force JSON (True) or console (False) output; None reads the environment.
    """
    level = (level or os.environ.get('LOG_LEVEL') or 'INFO').upper()
    if json_format is None:
        json_format = _use_json()

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter(color=sys.stdout.isatty()))
    logger.addHandler(handler)
    logger.propagate = False

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Logger under the hsaps tree, e.g. get_logger('hsaps.tasks.scheduler')."""
    return logging.getLogger(name)


class LogContext:
    """Attach extra fields to every record logged inside the block.

    Usage:
        with LogContext(submission_id=42, effect='badge'):
            logger.info('Running side effect')
    """

    def __init__(self, **fields):
        self.fields = fields
        self._previous = None

    def __enter__(self):
        previous = self._previous = logging.getLogRecordFactory()
        fields = self.fields

        def factory(*args, **kwargs):
            record = previous(*args, **kwargs)
            merged = _extra_fields(record)
            merged.update(fields)
            record.extra = merged
            return record

        logging.setLogRecordFactory(factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self._previous)
        return False
