"""Per-invocation run log.

One ``RunLog`` is created for each migration call. It forwards events to
structlog, keeps the lines of that call only, and owns the completion
notice so it is emitted exactly once.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

from core.constants import COMPLETION_NOTICE
from core.logging_config import get_logger


class RunLog:
    """Structured log scoped to one migration call."""

    def __init__(self, verbose: bool = False, logger: Any | None = None) -> None:
        self.run_id = uuid.uuid4().hex[:12]
        self.verbose = verbose
        self.lines: list[str] = []
        self._completed = False
        if logger is None:
            logger = get_logger("ampmix.run").bind(run_id=self.run_id)
        self._logger = logger

    @property
    def completed(self) -> bool:
        """Return whether the completion notice was already emitted."""
        return self._completed

    def debug(self, event: str, **fields: object) -> None:
        """Log a debug event; dropped unless the run is verbose."""
        if not self.verbose:
            return
        self.lines.append(_format_line(event, fields))
        self._logger.debug(event, **fields)

    def info(self, event: str, **fields: object) -> None:
        """Log an info-level structured event."""
        self.lines.append(_format_line(event, fields))
        self._logger.info(event, **fields)

    def warning(self, event: str, **fields: object) -> None:
        """Log a warning-level structured event."""
        self.lines.append(_format_line(event, fields))
        self._logger.warning(event, **fields)

    def error(self, event: str, **fields: object) -> None:
        """Log an error-level structured event."""
        self.lines.append(_format_line(event, fields))
        self._logger.error(event, **fields)

    def complete(self) -> bool:
        """Emit the completion notice once.

        Returns:
            True when this call emitted the notice, False if already emitted.
        """
        if self._completed:
            return False
        self._completed = True
        self.info("migration_finished", notice=COMPLETION_NOTICE)
        return True

    def text(self) -> str:
        """Return the collected lines as one newline-joined string."""
        return "\n".join(self.lines)


def _format_line(event: str, fields: dict[str, object]) -> str:
    """Render one structured event as a text line.

    Args:
        event: Event name.
        fields: Event fields.

    Returns:
        The bare event name, or a JSON object when fields are present.
    """
    if not fields:
        return event
    payload = {"event": event, **fields}
    return json.dumps(payload, sort_keys=True, default=str)
