"""Logging helpers: secret masking, JSON lines, and handler management."""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path

from NSArchive.logging_utils import (
    LOGGER_NAME,
    JSONFormatter,
    _remove_expired_logs,
    mask_sensitive_data,
    setup_logging,
)
from NSArchive.settings import LoggingConfiguration

# --- Test Cases ---


def test_mask_sensitive_data_masks_credentials() -> None:
    masked = mask_sensitive_data(
        {"Secret_Access_Key": "k", "heartbeat_url": "https://hc/abc", "object": "index.html"}
    )

    assert masked["Secret_Access_Key"] == "***masked***"
    assert masked["heartbeat_url"] == "***masked***"
    assert masked["object"] == "index.html"


def test_json_formatter_includes_stage_and_extra_fields() -> None:
    record = logging.makeLogRecord(
        {
            "name": "NSArchive.storage",
            "levelname": "INFO",
            "msg": "uploading %d bytes",
            "args": (12,),
            "stage": "upload",
            "extra_fields": {"object": "index.html", "token": "x"},
        }
    )

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "uploading 12 bytes"
    assert payload["stage"] == "upload"
    assert payload["logger"] == "NSArchive.storage"
    assert payload["object"] == "index.html"
    assert payload["token"] == "***masked***"
    assert payload["timestamp"].endswith("Z")


def test_setup_logging_writes_json_lines(tmp_path: Path) -> None:
    logger = setup_logging(LoggingConfiguration(level="debug"), log_dir=tmp_path)
    try:
        logging.getLogger("NSArchive.site").info("catalog holds %d objects", 3, extra={"stage": "catalog"})
        for handler in logger.handlers:
            handler.flush()

        files = list(tmp_path.glob("nsarchive-*.jsonl"))
        assert len(files) == 1
        lines = [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]
        assert lines[-1]["message"] == "catalog holds 3 objects"
        assert lines[-1]["stage"] == "catalog"
        assert logger.level == logging.DEBUG
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def test_setup_logging_replaces_its_own_handlers(tmp_path: Path) -> None:
    logger = setup_logging(LoggingConfiguration(), log_dir=tmp_path)
    try:
        setup_logging(LoggingConfiguration())
        managed = [h for h in logger.handlers if getattr(h, "_nsarchive_managed", False)]
        assert len(managed) == 1
        assert logger.name == LOGGER_NAME
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def test_expired_log_files_are_removed(tmp_path: Path) -> None:
    stale = tmp_path / "nsarchive-20200101.jsonl"
    stale_backup = tmp_path / "nsarchive-20200101.jsonl.1"
    fresh = tmp_path / "nsarchive-20991231.jsonl"
    unrelated = tmp_path / "notes.txt"
    for path in (stale, stale_backup, fresh, unrelated):
        path.write_text("{}\n", encoding="utf-8")
    old = time.time() - 40 * 86400
    for path in (stale, stale_backup, unrelated):
        os.utime(path, (old, old))

    _remove_expired_logs(tmp_path, retention_days=30)

    assert not stale.exists()
    assert not stale_backup.exists()
    assert fresh.exists()
    assert unrelated.exists()
