"""Log output for the ossmultipart package.

The client logs only through ``ossmultipart.*`` loggers and attaches the
transaction it is working on (operation, bucket, object, upload id, ...)
as record extras. ``configure_logging`` applies the ``logging`` section of
a ``ClientConfig`` to the package logger; the root logger is never touched.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO

from ossmultipart.config import ClientConfig, LoggingConfig

PACKAGE_LOGGER = "ossmultipart"

# Record extras set by MultipartClient and MultipartUploader.
_CONTEXT_FIELDS = (
    "operation",
    "bucket",
    "object",
    "upload_id",
    "status",
    "duration_ms",
    "request_id",
)

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _context(record: logging.LogRecord) -> dict:
    context = {}
    for key in _CONTEXT_FIELDS:
        value = getattr(record, key, None)
        if value is not None:
            context[key] = value
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message and
    whatever transaction context the record carries."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ContextTextFormatter(logging.Formatter):
    """Plain text lines with the transaction context as trailing ``key=value``
    pairs, e.g. ``... Committed transaction [operation=commit upload_id=u1]``."""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = _context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} [{pairs}]"


def configure_logging(
    config: LoggingConfig | ClientConfig | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Apply a logging configuration to the ``ossmultipart`` logger.

    Calling it again replaces the handler installed by the previous call.

    Args:
        config: The ``logging`` section, or a whole ``ClientConfig`` as
            returned by ``load_config``. Defaults apply when None.
        stream: Where records are written; stderr when None.

    Returns:
        The configured package logger.
    """
    if isinstance(config, ClientConfig):
        config = config.logging
    config = config or LoggingConfig()

    numeric_level = getattr(logging, config.level.upper(), logging.INFO)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(numeric_level)
    logger.propagate = config.propagate

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(numeric_level)
    if config.format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ContextTextFormatter())

    logger.addHandler(handler)
    return logger
