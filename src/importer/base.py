"""Importer protocol consumed by the pipeline orchestrator."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Protocol, Sequence, Union

from core.types import ImportCredentials, ImportOutcome, PipelineConfiguration

ImportSource = Union[str, Path, Sequence[Path], BinaryIO]


class Importer(Protocol):
    """Bulk import capability for one record type at a time."""

    def import_records(
        self,
        credentials: ImportCredentials,
        source: ImportSource,
        options: PipelineConfiguration,
    ) -> ImportOutcome:
        """Read raw NDJSON records, transform, send, and report counters.

        Per-record failures are counted in the outcome, not raised.
        """
        ...
