"""Shared typed models.

This module defines immutable data models used by the transforms,
orchestrator, importer and invocation layers to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Callable, Mapping, Optional

from core.constants import (
    DEFAULT_CUSTOM_ID_FIELD,
    MODE_MERGED,
    ORDER_ASCENDING,
    ORDER_DESCENDING,
    RECORD_TYPE_EVENT,
    RECORD_TYPE_GROUP,
    RECORD_TYPE_USER,
    REGION_US,
)

RawRecord = dict[str, Any]
DestinationRecord = dict[str, Any]
Transform = Callable[[RawRecord], Optional[DestinationRecord]]


@dataclass(frozen=True)
class ImportCredentials:
    """Mixpanel project credentials.

    Attributes:
        secret: Project API secret used for basic auth on imports.
        token: Project token stamped onto profile updates.
        project: Mixpanel project id.
    """

    secret: str
    token: str
    project: str


@dataclass(frozen=True)
class TransformOptions:
    """Options bound into transforms once per invocation.

    Attributes:
        custom_id_field: Raw field used as the canonical subject id.
    """

    custom_id_field: str = DEFAULT_CUSTOM_ID_FIELD


@dataclass(frozen=True)
class FileOrdering:
    """Directory listing order policies.

    Attributes:
        events: Event file order when all files stream as one input.
        profiles: User/group file order when all files stream as one input.
        per_file: File order when each file is imported on its own.
    """

    events: str = ORDER_DESCENDING
    profiles: str = ORDER_ASCENDING
    per_file: str = ORDER_ASCENDING


@dataclass(frozen=True)
class PipelineConfiguration:
    """Immutable settings for one record-type pipeline.

    Attributes:
        record_type: One of ``event``, ``user`` or ``group``.
        transform: Bound per-record transform.
        deduplicate: Drop records with identical content.
        compress: Gzip request bodies.
        strict: Ask Mixpanel to validate events strictly.
        region: Residency region, ``US`` or ``EU``.
        remove_nulls: Drop ``None`` property values before sending.
        aliases: Property key renames applied after the transform.
        tags: Key/value pairs stamped onto every record.
        verbose: Keep full response bodies instead of abridged ones.
    """

    record_type: str
    transform: Transform
    deduplicate: bool = False
    compress: bool = False
    strict: bool = True
    region: str = REGION_US
    remove_nulls: bool = True
    aliases: Mapping[str, str] = field(default_factory=dict)
    tags: Mapping[str, Any] = field(default_factory=dict)
    verbose: bool = False


@dataclass(frozen=True)
class ImportOutcome:
    """Aggregate statistics for one pipeline execution.

    Attributes:
        record_type: Record type the counters describe.
        total: Raw records read.
        success: Records accepted by Mixpanel.
        failed: Records rejected, unparseable or untransformable.
        skipped: Records the transform marked as not applicable.
        duplicates: Records dropped by deduplication.
        batches: Batches built.
        requests: HTTP requests sent, retries included.
        retries: Retried requests.
        duration: Wall time in milliseconds.
        eps: Records per second.
        rps: Requests per second.
        errors: Error details in the order they happened.
        responses: Response payloads in request order.
    """

    record_type: str = ""
    total: int = 0
    success: int = 0
    failed: int = 0
    skipped: int = 0
    duplicates: int = 0
    batches: int = 0
    requests: int = 0
    retries: int = 0
    duration: int = 0
    eps: float = 0.0
    rps: float = 0.0
    errors: tuple[Any, ...] = ()
    responses: tuple[Any, ...] = ()

    @classmethod
    def empty(cls, record_type: str = "") -> "ImportOutcome":
        """Return the zeroed outcome used for disabled pipelines."""
        return cls(record_type=record_type)

    def to_payload(self) -> dict[str, object]:
        """Serialize the outcome into a JSON-safe dictionary."""
        payload = asdict(self)
        payload["errors"] = list(self.errors)
        payload["responses"] = list(self.responses)
        return payload


@dataclass(frozen=True)
class MigrationResults:
    """Per-record-type outcomes of one migration.

    Attributes:
        events: Event pipeline outcome.
        users: User profile pipeline outcome.
        groups: Group profile pipeline outcome.
    """

    events: ImportOutcome = field(default_factory=lambda: ImportOutcome.empty(RECORD_TYPE_EVENT))
    users: ImportOutcome = field(default_factory=lambda: ImportOutcome.empty(RECORD_TYPE_USER))
    groups: ImportOutcome = field(default_factory=lambda: ImportOutcome.empty(RECORD_TYPE_GROUP))

    def to_payload(self) -> dict[str, object]:
        """Serialize all outcomes into one JSON-safe dictionary."""
        return {
            "events": self.events.to_payload(),
            "users": self.users.to_payload(),
            "groups": self.groups.to_payload(),
        }


@dataclass(frozen=True)
class ResolvedSource:
    """Input located by the source resolver.

    Attributes:
        kind: ``file``, ``directory`` or ``stream``.
        path: Absolute file or directory path, if any.
        files: Candidate record files (one entry for ``file``).
        stream: Binary stream, when the input is a live stream.
    """

    kind: str
    path: Path | None = None
    files: tuple[Path, ...] = ()
    stream: BinaryIO | None = None


@dataclass(frozen=True)
class MigrationConfig:
    """Invocation configuration for one migration.

    Attributes:
        secret: Mixpanel project secret.
        token: Mixpanel project token.
        project: Mixpanel project id.
        directory: Directory of uncompressed Amplitude NDJSON exports.
        file: Single uncompressed Amplitude NDJSON export.
        stream: Binary stream of Amplitude NDJSON.
        region: ``US`` or ``EU`` residency.
        strict: Use strict event validation.
        verbose: Emit debug-level run log lines.
        logs: Persist the results as a JSON log file.
        events: Send events.
        users: Send user profiles.
        groups: Send group profiles.
        dedupe: Drop records with identical content within one pipeline.
        custom_user_id: Raw field to use as the canonical user id.
        aliases: Property key renames passed to the importer.
        tags: Extra key/value pairs passed to the importer.
        group_keys: Group keys, accepted for pass-through only.
        mode: ``merged`` (one input per pipeline) or ``per_file``.
        file_ordering: Directory listing order policies.
    """

    secret: str
    token: str
    project: str
    directory: str | None = None
    file: str | None = None
    stream: BinaryIO | None = None
    region: str = REGION_US
    strict: bool = False
    verbose: bool = False
    logs: bool = False
    events: bool = True
    users: bool = True
    groups: bool = False
    dedupe: bool = False
    custom_user_id: str = DEFAULT_CUSTOM_ID_FIELD
    aliases: Mapping[str, str] = field(default_factory=dict)
    tags: Mapping[str, Any] = field(default_factory=dict)
    group_keys: tuple[str, ...] = ()
    mode: str = MODE_MERGED
    file_ordering: FileOrdering = field(default_factory=FileOrdering)

    @property
    def credentials(self) -> ImportCredentials:
        """Return the Mixpanel credentials for this migration."""
        return ImportCredentials(secret=self.secret, token=self.token, project=str(self.project))

    @property
    def transform_options(self) -> TransformOptions:
        """Return options bound into every transform."""
        return TransformOptions(custom_id_field=self.custom_user_id)
