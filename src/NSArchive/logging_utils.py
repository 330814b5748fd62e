"""Logging for the archive jobs.

Every job logs through the ``NSArchive`` logger. Console output is one short
human-readable line per record. When a log directory is configured, a daily
``nsarchive-YYYYMMDD.jsonl`` file also receives one JSON object per record,
with the ``stage`` passed through ``extra`` and credentials such as the
heartbeat URL masked. Files past the retention window are deleted on setup.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

from .settings import LoggingConfiguration

__all__ = ["LOGGER_NAME", "setup_logging", "mask_sensitive_data", "JSONFormatter"]

LOGGER_NAME = "NSArchive"

_SENSITIVE_KEYS = {
    "authorization",
    "access_key_id",
    "secret_access_key",
    "heartbeat_url",
    "token",
    "secret",
    "password",
}
_MASK = "***masked***"


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Return a copy of ``payload`` with credential-like keys masked.

    Examples:
        >>> mask_sensitive_data({"heartbeat_url": "https://hc/abc", "stage": "site"})
        {'heartbeat_url': '***masked***', 'stage': 'site'}
    """
    return {
        key: _MASK if key.lower() in _SENSITIVE_KEYS else value for key, value in payload.items()
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, stage."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_obj = {
            "timestamp": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "stage": getattr(record, "stage", None),
        }
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_obj.update(extra_fields)
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(log_obj), default=str)


def _remove_expired_logs(log_dir: Path, retention_days: int) -> None:
    cutoff = datetime.now(timezone.utc).timestamp() - retention_days * 86400
    for path in log_dir.glob("nsarchive-*.jsonl*"):
        if path.stat().st_mtime < cutoff:
            path.unlink(missing_ok=True)


def setup_logging(
    config: Optional[LoggingConfiguration] = None, log_dir: Optional[Path] = None
) -> logging.Logger:
    """Configure console and JSON file handlers for the archive logger.

    Args:
        config: Logging configuration containing level, size, and retention.
        log_dir: Optional directory override for log file placement. When
            neither this nor ``config.log_dir`` is set, only the console
            handler is installed.

    Returns:
        Configured ``NSArchive`` logger.
    """
    config = config or LoggingConfiguration()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_nsarchive_managed", False):
            logger.removeHandler(handler)
            handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    stream_handler._nsarchive_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)

    target_dir = log_dir or config.log_dir
    if target_dir is not None:
        target_dir = Path(target_dir).expanduser()
        target_dir.mkdir(parents=True, exist_ok=True)
        _remove_expired_logs(target_dir, config.retention_days)
        today = datetime.now(timezone.utc).strftime("%Y%m%d")
        file_handler = RotatingFileHandler(
            target_dir / f"nsarchive-{today}.jsonl",
            maxBytes=int(config.max_log_size_mb * 1024 * 1024),
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler._nsarchive_managed = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    logger.propagate = True
    return logger
