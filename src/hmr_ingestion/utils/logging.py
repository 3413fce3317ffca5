# ============================================================================
# src/hmr_ingestion/utils/logging.py
# ============================================================================
"""
Logging setup for the extraction engine, template filler and API.

Records may carry extraction or fill context through ``extra=``
(see CONTEXT_FIELDS); the JSON formatter lifts those attributes into the
payload so a referral or template run can be followed across log lines.
"""

import json
import logging
import sys
import time
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Optional

# Record attributes copied into JSON output when set via ``extra=``
CONTEXT_FIELDS = (
    'method',
    'degraded',
    'mime_type',
    'template_type',
    'template_field',
)

# pypdf warns on every malformed xref of a scanned referral; PIL logs each
# PNG chunk at DEBUG
NOISY_LOGGERS = ('pypdf', 'PIL')


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    format_json: bool = False
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name; unknown names fall back to INFO
        log_file: Optional file path, parent directories are created
        format_json: Emit one JSON object per line
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if format_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    # Library chatter only surfaces when debugging
    library_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with any extraction/fill context."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def log_performance(logger: logging.Logger, operation: str):
    """
    Decorator logging how long an extraction or fill took.

    Failures are logged at ERROR with the elapsed time and re-raised.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.perf_counter() - start_time
                logger.error(f"{operation} failed after {duration:.3f}s: {e}")
                raise

            duration = time.perf_counter() - start_time
            logger.info(f"{operation} completed in {duration:.3f}s")
            return result

        return wrapper
    return decorator
