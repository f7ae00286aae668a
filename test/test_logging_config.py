import json
import logging
from pathlib import Path

from bizfin.logging_config import setup_channel


def test_channel_writes_json_lines_with_context(tmp_path: Path):
    logger = setup_channel("bizfin.test_channel", tmp_path / "channel.log")
    try:
        logger.info("month_rolled", extra={"context": {"month": "2024-06", "created": 2}})
        for handler in logger.handlers:
            handler.flush()

        (line,) = (tmp_path / "channel.log").read_text(encoding="utf-8").splitlines()
        record = json.loads(line)
        assert record["message"] == "month_rolled"
        assert record["logger"] == "bizfin.test_channel"
        assert record["month"] == "2024-06"
        assert record["created"] == 2
        assert record["where"].startswith("test_logging_config:")
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def test_channel_setup_is_idempotent(tmp_path: Path):
    path = tmp_path / "channel.log"
    logger = setup_channel("bizfin.test_idempotent", path)
    try:
        setup_channel("bizfin.test_idempotent", path)
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
