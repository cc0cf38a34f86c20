"""Process-wide logging: one rotating log file, console echo, quiet access paths."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import LoggingConfig, get_config

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class QuietPathFilter(logging.Filter):
    """Drop uvicorn access lines for paths that are polled, such as /health."""

    def __init__(self, paths: list[str]) -> None:
        super().__init__()
        self.markers = tuple(f" {path} " for path in paths) + tuple(f" {path}?" for path in paths)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(marker in message for marker in self.markers)


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def build_handlers(cfg: LoggingConfig) -> list[logging.Handler]:
    log_file = Path(cfg.file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    file_handler = RotatingFileHandler(
        log_file, maxBytes=cfg.max_bytes, backupCount=cfg.backup_count, encoding="utf-8"
    )
    console_handler = logging.StreamHandler()
    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
    return [file_handler, console_handler]


def setup_logging() -> None:
    cfg = get_config().logging

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, RotatingFileHandler):
            handler.close()
    root_logger.handlers = build_handlers(cfg)
    root_logger.setLevel(_level(cfg.level))

    logging.getLogger("sqlalchemy.engine").setLevel(_level(cfg.sql_level))

    access_logger = logging.getLogger("uvicorn.access")
    access_logger.filters = [f for f in access_logger.filters if not isinstance(f, QuietPathFilter)]
    access_logger.addFilter(QuietPathFilter(cfg.quiet_paths))
