"""Persist migration results as timestamped JSON documents."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from core.constants import RESULTS_LOG_PREFIX
from core.logging_config import get_logger
from core.types import MigrationResults

_LOGGER = get_logger(__name__)


def write_results_log(
    results: MigrationResults,
    logs_dir: Path,
    now: datetime | None = None,
) -> Path | None:
    """Write results to ``<logs_dir>/amplitude-import-<timestamp>.json``.

    Write failures are logged and swallowed; persistence never fails a
    migration.

    Args:
        results: Migration results to persist.
        logs_dir: Target directory, created when missing.
        now: Optional timestamp override.

    Returns:
        Written file path, or None if writing failed.
    """
    timestamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%S%fZ")
    log_path = logs_dir / f"{RESULTS_LOG_PREFIX}-{timestamp}.json"
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        log_path.write_text(
            json.dumps(results.to_payload(), indent=2, sort_keys=True, default=str) + "\n",
            encoding="utf-8",
        )
    except OSError as error:
        _LOGGER.warning("results_log_write_failed", path=str(log_path), error=str(error))
        return None
    _LOGGER.info("results_log_written", path=str(log_path))
    return log_path
