"""Public SDK surface for AmpMix.

This module provides a stable import path for library users.
It re-exports the migration entry point and typed option models.
"""

from __future__ import annotations

from core.config import RuntimeConfig
from core.errors import (
    AmpMixError,
    ConfigError,
    ImporterError,
    PathNotFoundError,
    SourceError,
    TransformError,
)
from core.run_log import RunLog
from core.types import (
    FileOrdering,
    ImportCredentials,
    ImportOutcome,
    MigrationConfig,
    MigrationResults,
    PipelineConfiguration,
    TransformOptions,
)
from importer.mixpanel_client import MixpanelImporter
from ingest.pipeline import run_migration
from ingest.summary import summarize_outcomes
from transforms.event_transform import amplitude_event_to_mixpanel
from transforms.identity import resolve_identity
from transforms.profile_transforms import amplitude_group_to_mixpanel, amplitude_user_to_mixpanel

__all__ = [
    "AmpMixError",
    "ConfigError",
    "FileOrdering",
    "ImportCredentials",
    "ImportOutcome",
    "ImporterError",
    "MigrationConfig",
    "MigrationResults",
    "MixpanelImporter",
    "PathNotFoundError",
    "PipelineConfiguration",
    "RunLog",
    "RuntimeConfig",
    "SourceError",
    "TransformError",
    "TransformOptions",
    "amplitude_event_to_mixpanel",
    "amplitude_group_to_mixpanel",
    "amplitude_user_to_mixpanel",
    "resolve_identity",
    "run_migration",
    "summarize_outcomes",
]
