from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

MAX_LOG_BYTES = 2_000_000
LOG_BACKUPS = 5

# logger name -> file; records also propagate to app.log
CHANNELS = {
    "bizfin.rollover": "rollover.log",
    "bizfin.store": "store.log",
}


class JsonFormatter(logging.Formatter):
    """One JSON object per line; `extra={"context": {...}}` is merged in."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "where": f"{record.module}:{record.lineno}",
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            payload.update(context)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _rotating(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    handler.setFormatter(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    handler.setLevel(level)
    return handler


def setup_channel(name: str, path: Path, level: int = logging.INFO) -> logging.Logger:
    """Give logger `name` its own file, once."""
    logger = logging.getLogger(name)
    target = str(path.resolve())
    if not any(getattr(h, "baseFilename", None) == target for h in logger.handlers):
        logger.addHandler(_rotating(path, level))
    logger.setLevel(level)
    return logger


def setup_logging(logs_dir: Path, level: int = logging.INFO) -> None:
    logs_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        root.addHandler(_rotating(logs_dir / "app.log", level))
        root.addHandler(_rotating(logs_dir / "errors.log", logging.ERROR))

    for name, filename in CHANNELS.items():
        setup_channel(name, logs_dir / filename, level)
