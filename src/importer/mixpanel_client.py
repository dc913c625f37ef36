"""Mixpanel bulk import client.

This module streams NDJSON records from a source, applies the pipeline
transform, batches the results and posts them to Mixpanel's ingestion
endpoints with retry and exponential backoff.
"""

from __future__ import annotations

import gzip
import json
import time
from dataclasses import dataclass, field
from itertools import islice
from typing import Any, Callable, Iterable, Iterator, Mapping

import requests

from core.config import RuntimeConfig
from core.constants import (
    API_HOSTS,
    BACKOFF_MULTIPLIER,
    EVENT_BATCH_SIZE,
    IMPORT_ENDPOINTS,
    INITIAL_BACKOFF_SECONDS,
    MAX_BACKOFF_SECONDS,
    PROFILE_BATCH_SIZE,
    RECORD_TYPE_EVENT,
    RETRYABLE_STATUS_CODES,
)
from core.errors import ImporterError, TransformError
from core.logging_config import get_logger
from core.types import DestinationRecord, ImportCredentials, ImportOutcome, PipelineConfiguration
from importer.base import ImportSource
from importer.record_stream import iter_source_lines, parse_record_line
from transforms.record_deduplication import RecordDeduplicator

_LOGGER = get_logger(__name__)


@dataclass
class _ImportTally:
    """Mutable counters for one import call."""

    total: int = 0
    success: int = 0
    failed: int = 0
    skipped: int = 0
    duplicates: int = 0
    batches: int = 0
    requests: int = 0
    retries: int = 0
    errors: list[Any] = field(default_factory=list)
    responses: list[Any] = field(default_factory=list)

    def record_failure(self, location: str, error: Exception) -> None:
        self.failed += 1
        self.errors.append({"location": location, "error": str(error)})

    def to_outcome(self, record_type: str, elapsed_seconds: float) -> ImportOutcome:
        eps = self.total / elapsed_seconds if elapsed_seconds > 0 else 0.0
        rps = self.requests / elapsed_seconds if elapsed_seconds > 0 else 0.0
        return ImportOutcome(
            record_type=record_type,
            total=self.total,
            success=self.success,
            failed=self.failed,
            skipped=self.skipped,
            duplicates=self.duplicates,
            batches=self.batches,
            requests=self.requests,
            retries=self.retries,
            duration=int(elapsed_seconds * 1000),
            eps=round(eps, 2),
            rps=round(rps, 2),
            errors=tuple(self.errors),
            responses=tuple(self.responses),
        )


@dataclass(frozen=True)
class _ImportRequest:
    url: str
    params: dict[str, str]
    data: bytes
    headers: dict[str, str]
    auth: tuple[str, str] | None


class MixpanelImporter:
    """Default importer posting records to Mixpanel over HTTPS."""

    def __init__(
        self,
        runtime: RuntimeConfig | None = None,
        session: Any | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Create an importer.

        Args:
            runtime: Retry and timeout settings; read from env if omitted.
            session: ``requests``-compatible session.
            sleep: Backoff sleep function.
        """
        self._runtime = runtime or RuntimeConfig.from_env()
        self._session = session or requests.Session()
        self._sleep = sleep

    def import_records(
        self,
        credentials: ImportCredentials,
        source: ImportSource,
        options: PipelineConfiguration,
    ) -> ImportOutcome:
        """Import every record of a source for one record type.

        Args:
            credentials: Mixpanel project credentials.
            source: File path, sequence of paths, or binary stream.
            options: Pipeline configuration with the bound transform.

        Returns:
            Aggregate counters, errors and responses for this import.

        Raises:
            ImporterError: If the region has no known API host.
        """
        if options.region not in API_HOSTS:
            raise ImporterError(
                f"Unsupported region '{options.region}' for import. "
                f"Supported regions: {tuple(API_HOSTS)}."
            )
        started_at = time.monotonic()
        tally = _ImportTally()
        records = self._prepare_records(credentials, source, options, tally)
        batch_size = (
            EVENT_BATCH_SIZE if options.record_type == RECORD_TYPE_EVENT else PROFILE_BATCH_SIZE
        )
        for batch in _batched(records, batch_size):
            tally.batches += 1
            self._send_batch(credentials, batch, options, tally)
        outcome = tally.to_outcome(options.record_type, time.monotonic() - started_at)
        _LOGGER.info(
            "import_completed",
            record_type=options.record_type,
            region=options.region,
            total=outcome.total,
            success=outcome.success,
            failed=outcome.failed,
            skipped=outcome.skipped,
            batches=outcome.batches,
        )
        return outcome

    def _prepare_records(
        self,
        credentials: ImportCredentials,
        source: ImportSource,
        options: PipelineConfiguration,
        tally: _ImportTally,
    ) -> Iterator[DestinationRecord]:
        deduplicator = RecordDeduplicator() if options.deduplicate else None
        for location, line in iter_source_lines(source):
            tally.total += 1
            try:
                raw_record = parse_record_line(location, line)
                record = options.transform(raw_record)
            except (ValueError, TypeError, TransformError) as error:
                tally.record_failure(location, error)
                continue
            if record is None:
                tally.skipped += 1
                continue
            record = _finalize_record(record, credentials, options)
            if deduplicator is not None and deduplicator.is_duplicate(record):
                tally.duplicates += 1
                continue
            yield record

    def _send_batch(
        self,
        credentials: ImportCredentials,
        batch: list[DestinationRecord],
        options: PipelineConfiguration,
        tally: _ImportTally,
    ) -> None:
        request = _build_request(credentials, batch, options)
        response = self._post_with_retries(request, options.record_type, tally)
        if response is None:
            tally.failed += len(batch)
            return
        _record_response(response, batch, options, tally)

    def _post_with_retries(
        self,
        request: _ImportRequest,
        record_type: str,
        tally: _ImportTally,
    ) -> Any | None:
        """Post one batch, retrying throttled and transient failures.

        Returns:
            The final non-retryable response, or None once retries run out.
        """
        backoff = INITIAL_BACKOFF_SECONDS
        last_error = ""
        attempts = self._runtime.max_retries + 1
        for attempt in range(attempts):
            if attempt:
                tally.retries += 1
                self._sleep(backoff)
                backoff = min(backoff * BACKOFF_MULTIPLIER, MAX_BACKOFF_SECONDS)
            tally.requests += 1
            try:
                response = self._session.post(
                    request.url,
                    params=request.params,
                    data=request.data,
                    headers=request.headers,
                    auth=request.auth,
                    timeout=self._runtime.request_timeout,
                )
            except requests.RequestException as error:
                last_error = str(error)
                _LOGGER.warning(
                    "import_request_error", record_type=record_type, attempt=attempt + 1,
                    error=last_error,
                )
                continue
            if response.status_code not in RETRYABLE_STATUS_CODES:
                return response
            last_error = f"HTTP {response.status_code}"
            _LOGGER.warning(
                "import_request_retryable", record_type=record_type, attempt=attempt + 1,
                status_code=response.status_code,
            )
        tally.errors.append({"error": f"gave up after {attempts} attempts: {last_error}"})
        return None


def _build_request(
    credentials: ImportCredentials,
    batch: list[DestinationRecord],
    options: PipelineConfiguration,
) -> _ImportRequest:
    """Build the HTTP request for one batch."""
    url = API_HOSTS[options.region] + IMPORT_ENDPOINTS[options.record_type]
    body = json.dumps(batch, default=str).encode("utf-8")
    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if options.compress:
        body = gzip.compress(body)
        headers["Content-Encoding"] = "gzip"
    if options.record_type == RECORD_TYPE_EVENT:
        params = {"strict": "1" if options.strict else "0", "project_id": credentials.project}
        return _ImportRequest(url, params, body, headers, (credentials.secret, ""))
    return _ImportRequest(url, {"verbose": "1"}, body, headers, None)


def _finalize_record(
    record: DestinationRecord,
    credentials: ImportCredentials,
    options: PipelineConfiguration,
) -> DestinationRecord:
    """Apply tags, aliases and null removal; stamp the token on profiles."""
    is_event = options.record_type == RECORD_TYPE_EVENT
    container_key = "properties" if is_event else "$set"
    container: dict[str, Any] = dict(record.get(container_key) or {})
    container.update(options.tags)
    if options.aliases:
        container = {options.aliases.get(key, key): value for key, value in container.items()}
    if options.remove_nulls:
        container = {key: value for key, value in container.items() if value is not None}
    finalized = {**record, container_key: container}
    if not is_event:
        finalized["$token"] = credentials.token
    return finalized


def _record_response(
    response: Any,
    batch: list[DestinationRecord],
    options: PipelineConfiguration,
    tally: _ImportTally,
) -> None:
    """Fold one HTTP response into the tally."""
    payload = _response_payload(response)
    tally.responses.append(payload if options.verbose else _abridge(response.status_code, payload))
    if options.record_type == RECORD_TYPE_EVENT:
        default_imported = len(batch) if response.status_code == 200 else 0
        imported = int(payload.get("num_records_imported", default_imported))
        tally.success += imported
        tally.failed += len(batch) - imported
        failed_records = payload.get("failed_records") or []
        tally.errors.extend(failed_records)
        if response.status_code != 200 and not failed_records:
            tally.errors.append({"status_code": response.status_code, "error": payload.get("error")})
        return
    if response.status_code == 200 and not payload.get("error"):
        tally.success += len(batch)
        return
    tally.failed += len(batch)
    tally.errors.append({"status_code": response.status_code, "error": payload.get("error")})


def _response_payload(response: Any) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {"text": response.text}
    if isinstance(payload, Mapping):
        return dict(payload)
    return {"status": payload}


def _abridge(status_code: int, payload: Mapping[str, Any]) -> dict[str, Any]:
    abridged: dict[str, Any] = {"status_code": status_code}
    for key in ("num_records_imported", "status", "error"):
        if key in payload:
            abridged[key] = payload[key]
    return abridged


def _batched(
    records: Iterable[DestinationRecord],
    size: int,
) -> Iterator[list[DestinationRecord]]:
    iterator = iter(records)
    while batch := list(islice(iterator, size)):
        yield batch
