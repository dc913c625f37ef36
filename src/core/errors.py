"""AmpMix exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Structural errors abort a migration before any pipeline starts.
"""

from __future__ import annotations

from pathlib import Path


class AmpMixError(Exception):
    """Base exception for all migration failures."""


class ConfigError(AmpMixError):
    """Raised for invalid runtime or migration configuration."""


class SourceError(AmpMixError):
    """Raised when the input source cannot be resolved."""


class PathNotFoundError(SourceError):
    """Raised when the configured input path does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            f"Failed to resolve source at {path}: path does not exist. "
            "Provide an existing file or directory of Amplitude exports."
        )


class TransformError(AmpMixError):
    """Raised when a raw record cannot be mapped."""


class ImporterError(AmpMixError):
    """Raised for bulk import transport failures."""


class PipelineFailure(AmpMixError):
    """Describes a record-type pipeline that reported failed records.

    Never raised across the pipeline boundary; the orchestrator uses it to
    label error entries captured in an outcome.
    """

    def __init__(self, record_type: str, message: str) -> None:
        self.record_type = record_type
        super().__init__(f"{record_type} pipeline failed: {message}")
