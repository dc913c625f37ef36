"""Migration orchestration for Amplitude exports.

This module resolves the input, builds one pipeline per enabled record
type, runs the pipelines concurrently against the importer and merges
their outcomes into one ``MigrationResults`` value.
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from core.config import RuntimeConfig, validate_migration_config
from core.constants import (
    MODE_PER_FILE,
    RECORD_TYPE_EVENT,
    RECORD_TYPE_GROUP,
    RECORD_TYPE_USER,
)
from core.errors import AmpMixError, PipelineFailure
from core.run_log import RunLog
from core.types import (
    ImportOutcome,
    MigrationConfig,
    MigrationResults,
    PipelineConfiguration,
    ResolvedSource,
)
from importer.base import Importer, ImportSource
from importer.mixpanel_client import MixpanelImporter
from ingest.source_resolver import order_source_files, resolve_source
from ingest.summary import summarize_outcomes
from store.results_log import write_results_log
from transforms.registry import build_transform

_RESULT_FIELDS = {
    RECORD_TYPE_EVENT: "events",
    RECORD_TYPE_USER: "users",
    RECORD_TYPE_GROUP: "groups",
}


class MigrationPipelineRunner:
    """Runner executing every enabled record-type pipeline of one migration."""

    def __init__(self, config: MigrationConfig, importer: Importer, run_log: RunLog) -> None:
        self._config = config
        self._importer = importer
        self._run_log = run_log

    def run(self) -> MigrationResults:
        """Execute the migration and return merged results.

        Raises:
            ConfigError: If the configuration is invalid.
            SourceError: If the input cannot be resolved.
        """
        return asyncio.run(self.run_async())

    async def run_async(self) -> MigrationResults:
        """Execute the migration inside a running event loop."""
        validate_migration_config(self._config)
        source = resolve_source(self._config)
        pipelines = build_pipeline_configurations(self._config)
        self._run_log.info(
            "migration_started",
            source_kind=source.kind,
            source_path=str(source.path) if source.path else None,
            file_count=len(source.files),
            record_types=list(pipelines),
            region=self._config.region,
            mode=self._config.mode,
        )
        if self._config.mode == MODE_PER_FILE and source.kind == "directory":
            outcomes = await self._run_per_file(source, pipelines)
        else:
            outcomes = await self._run_merged(source, pipelines)
        return _build_results(outcomes)

    async def _run_merged(
        self,
        source: ResolvedSource,
        pipelines: dict[str, PipelineConfiguration],
    ) -> dict[str, ImportOutcome]:
        with _shareable_source(source, len(pipelines)) as shared_source:
            jobs = {
                record_type: (options, self._merged_input(shared_source, record_type))
                for record_type, options in pipelines.items()
            }
            return await self._run_concurrently(jobs)

    async def _run_per_file(
        self,
        source: ResolvedSource,
        pipelines: dict[str, PipelineConfiguration],
    ) -> dict[str, ImportOutcome]:
        per_type: dict[str, list[ImportOutcome]] = {record_type: [] for record_type in pipelines}
        running_success = {record_type: 0 for record_type in pipelines}
        files = order_source_files(source.files, self._config.file_ordering.per_file)
        for file_index, file_path in enumerate(files, 1):
            jobs = {record_type: (options, file_path) for record_type, options in pipelines.items()}
            outcomes = await self._run_concurrently(jobs)
            for record_type, outcome in outcomes.items():
                per_type[record_type].append(outcome)
                running_success[record_type] += outcome.success
            self._run_log.info(
                "migration_progress",
                file=file_path.name,
                files_done=file_index,
                files_total=len(files),
                **{_RESULT_FIELDS[record_type]: count for record_type, count in running_success.items()},
            )
        return {
            record_type: summarize_outcomes(outcomes)
            for record_type, outcomes in per_type.items()
        }

    async def _run_concurrently(
        self,
        jobs: dict[str, tuple[PipelineConfiguration, ImportSource]],
    ) -> dict[str, ImportOutcome]:
        """Run pipelines side by side; one failure never cancels the others."""
        credentials = self._config.credentials
        record_types = list(jobs)
        for record_type in record_types:
            self._run_log.debug("pipeline_started", record_type=record_type)
        results = await asyncio.gather(
            *(
                asyncio.to_thread(self._importer.import_records, credentials, job_source, options)
                for options, job_source in jobs.values()
            ),
            return_exceptions=True,
        )
        return {
            record_type: self._settle(record_type, result)
            for record_type, result in zip(record_types, results)
        }

    def _settle(self, record_type: str, result: Any) -> ImportOutcome:
        """Turn one gathered result into an outcome and log it."""
        if isinstance(result, BaseException) and not isinstance(result, Exception):
            raise result
        if isinstance(result, Exception):
            failure = PipelineFailure(record_type, str(result))
            self._run_log.error("pipeline_crashed", record_type=record_type, error=str(failure))
            return ImportOutcome(record_type=record_type, errors=(str(failure),))
        if result.failed:
            failure = PipelineFailure(record_type, f"{result.failed} records failed")
            self._run_log.warning(
                "pipeline_failed",
                record_type=record_type,
                success=result.success,
                failed=result.failed,
                error=str(failure),
            )
        else:
            self._run_log.info(
                "pipeline_completed",
                record_type=record_type,
                success=result.success,
                skipped=result.skipped,
                duration=result.duration,
            )
        return result

    def _merged_input(self, source: ResolvedSource, record_type: str) -> ImportSource:
        """Pick the importer input for one pipeline in merged mode."""
        if source.kind == "stream" and source.stream is not None:
            return source.stream
        if source.kind == "file" and source.path is not None:
            return source.path
        ordering = self._config.file_ordering
        order = ordering.events if record_type == RECORD_TYPE_EVENT else ordering.profiles
        return order_source_files(source.files, order)


def run_migration(
    config: MigrationConfig,
    importer: Importer | None = None,
    run_log: RunLog | None = None,
    runtime: RuntimeConfig | None = None,
) -> MigrationResults:
    """Migrate Amplitude exports into Mixpanel.

    Args:
        config: Invocation configuration.
        importer: Bulk importer; ``MixpanelImporter`` if omitted.
        run_log: Per-call log; a fresh one is created if omitted.
        runtime: Runtime settings; read from env if omitted.

    Returns:
        Per-record-type outcomes.

    Raises:
        ConfigError: If configuration is invalid.
        SourceError: If the input cannot be resolved.
    """
    run_log = run_log or RunLog(verbose=config.verbose)
    try:
        runtime = runtime or RuntimeConfig.from_env()
        importer = importer or MixpanelImporter(runtime)
        results = MigrationPipelineRunner(config, importer, run_log).run()
        if config.logs:
            write_results_log(results, runtime.logs_dir)
        run_log.info(
            "migration_completed",
            events_success=results.events.success,
            events_failed=results.events.failed,
            users_success=results.users.success,
            users_failed=results.users.failed,
            groups_success=results.groups.success,
            groups_failed=results.groups.failed,
        )
        return results
    except AmpMixError as error:
        run_log.error("migration_aborted", error=str(error))
        raise
    finally:
        run_log.complete()


def build_pipeline_configurations(config: MigrationConfig) -> dict[str, PipelineConfiguration]:
    """Build one pipeline configuration per enabled record type.

    Args:
        config: Invocation configuration.

    Returns:
        Pipeline configurations keyed by record type, in event/user/group order.
    """
    transform_options = config.transform_options
    return {
        record_type: PipelineConfiguration(
            record_type=record_type,
            transform=build_transform(record_type, transform_options),
            deduplicate=config.dedupe,
            compress=record_type == RECORD_TYPE_EVENT,
            strict=config.strict,
            region=config.region,
            aliases=dict(config.aliases),
            tags=dict(config.tags),
            verbose=config.verbose,
        )
        for record_type in enabled_record_types(config)
    }


def enabled_record_types(config: MigrationConfig) -> tuple[str, ...]:
    """Return enabled record types in event/user/group order."""
    flags = (
        (RECORD_TYPE_EVENT, config.events),
        (RECORD_TYPE_USER, config.users),
        (RECORD_TYPE_GROUP, config.groups),
    )
    return tuple(record_type for record_type, enabled in flags if enabled)


def _build_results(outcomes: dict[str, ImportOutcome]) -> MigrationResults:
    """Merge outcomes into results with zeroed placeholders for disabled types."""
    fields = {
        _RESULT_FIELDS[record_type]: outcomes.get(record_type, ImportOutcome.empty(record_type))
        for record_type in _RESULT_FIELDS
    }
    return MigrationResults(**fields)


@contextmanager
def _shareable_source(source: ResolvedSource, consumers: int) -> Iterator[ResolvedSource]:
    """Spool a stream to disk when more than one pipeline must read it."""
    if source.kind != "stream" or source.stream is None or consumers <= 1:
        yield source
        return
    with tempfile.TemporaryDirectory(prefix="ampmix-") as spool_dir:
        spool_path = Path(spool_dir) / "stream.jsonl"
        is_binary = isinstance(source.stream.read(0), bytes)
        mode = "wb" if is_binary else "w"
        encoding = None if is_binary else "utf-8"
        with spool_path.open(mode, encoding=encoding) as spool:
            shutil.copyfileobj(source.stream, spool)
        yield ResolvedSource(kind="file", path=spool_path, files=(spool_path,))
