"""
Logging setup for the linter.

Library modules only create module loggers; the hosting application calls
`configure_logging` (or `configure_from_settings`) once. Rule context such as
the rule id and the checked pointer travels in ``extra`` so that the JSON
formatter can emit it as separate fields.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import LinterSettings

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'

LEVEL_NAMES = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

RULE_CONTEXT_FIELDS = ('rule_id', 'check', 'dialect', 'pointer')

ENGINE_LOGGERS = (
    'speclint.openapi.parser',
    'speclint.openapi.converter',
    'speclint.openapi.resolver',
    'speclint.openapi.reverse_index',
    'speclint.rules.context',
    'speclint.rules.registry',
    'speclint.rules.executor',
)


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    enable_structured_logging: bool = False,
) -> None:
    """Install console (and optionally rotating file) handlers on the root logger."""
    override = os.getenv('SPECLINT_LOG_LEVEL', '').upper()
    if override in LEVEL_NAMES:
        level = logging.getLevelName(override)

    formatter = StructuredFormatter() if enable_structured_logging else logging.Formatter(LOG_FORMAT)
    handlers = _handlers(log_file, max_bytes, backup_count)

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    configure_linter_loggers(level)

    logging.getLogger(__name__).info(
        f"Logging at {logging.getLevelName(level)}"
        + (f", writing to {log_file}" if log_file else "")
    )


def configure_from_settings(settings: LinterSettings, log_file: Optional[Path] = None) -> None:
    """Configure logging from `LinterSettings.log_level` and `structured_logging`."""
    configure_logging(
        level=logging.getLevelName(settings.log_level),
        log_file=log_file,
        enable_structured_logging=settings.structured_logging,
    )


def _handlers(log_file: Optional[Path], max_bytes: int, backup_count: int) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8',
        ))
    return handlers


def configure_linter_loggers(level: int) -> None:
    """Align the engine loggers with ``level``."""
    for name in ENGINE_LOGGERS:
        logging.getLogger(name).setLevel(level)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with rule context as top-level fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'time': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'source': f"{record.module}:{record.lineno}",
        }
        for field in RULE_CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = str(value)
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def get_linter_logger(name: str) -> logging.Logger:
    """Logger below the ``speclint`` namespace."""
    return logging.getLogger(f'speclint.{name}')


def log_rule_operation(
    logger: logging.Logger,
    message: str,
    rule_id: Optional[str] = None,
    check: Optional[str] = None,
    pointer: Optional[str] = None,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """Log ``message`` with the rule context attached as ``extra`` fields."""
    fields = {'rule_id': rule_id, 'check': check, 'pointer': pointer, **context}
    logger.log(level, message, extra={key: value for key, value in fields.items() if value is not None})
