"""Logging setup shared by the CLI and the gallery core."""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Iterable, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

SECRET_NAMES = ('password', 'api[_-]?key', 'upload[_-]?key', 'token', 'secret', 'authorization')


class SensitiveDataFilter(logging.Filter):
    """
    Mask credentials in log records.

    Matches `name=value`, `name: value` and `"name": "value"` forms for
    every name in SECRET_NAMES, which also covers the X-Upload-Key header.
    """

    PATTERN = re.compile(
        r'((?:x-)?(?:' + '|'.join(SECRET_NAMES) + r')["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)',
        re.IGNORECASE,
    )
    MASK = r'\1***MASKED***'

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.mask(record.msg)

        if isinstance(record.args, dict):
            record.args = {k: self.mask(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self.mask(arg) for arg in record.args)

        return True

    @classmethod
    def mask(cls, value):
        if isinstance(value, str):
            return cls.PATTERN.sub(cls.MASK, value)
        return value


def _build_handler(level: int, log_file: Optional[Path]) -> logging.Handler:
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding='utf-8')
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(SensitiveDataFilter())
    return handler


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up logging for one top-level package.

    Calling it again for the same component only updates the level.

    Args:
        component_name: Top-level logger name ('cli', 'gallery', 'common')
        log_level: DEBUG, INFO, WARNING or ERROR. Defaults to LOG_LEVEL env var or INFO
        log_file: Write to this file instead of stderr (keeps the REPL screen clean)

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')
    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    logger.addHandler(_build_handler(level, log_file))
    logger.propagate = False
    return logger


def setup_components(
    components: Iterable[str],
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> list[logging.Logger]:
    return [setup_logging(name, log_level, log_file) for name in components]


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
