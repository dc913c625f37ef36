"""Input source resolution for migrations.

This module decides whether a migration reads one file, a directory of
export files, or a live byte stream, and lists candidate files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from core.constants import ORDER_ASCENDING, ORDER_DESCENDING, SUPPORTED_RECORD_EXTENSIONS
from core.errors import ConfigError, PathNotFoundError, SourceError
from core.types import MigrationConfig, ResolvedSource


def resolve_source(config: MigrationConfig) -> ResolvedSource:
    """Resolve the configured input locator.

    A directory wins over a file, and either path wins over a stream.

    Args:
        config: Invocation configuration.

    Returns:
        Resolved file, directory or stream input.

    Raises:
        PathNotFoundError: If the configured path does not exist.
        SourceError: If a directory holds no record files.
        ConfigError: If no input locator is configured.
    """
    locator = config.directory or config.file
    if locator:
        source_path = Path(locator).expanduser().resolve()
        if not source_path.exists():
            raise PathNotFoundError(source_path)
        if source_path.is_file():
            return ResolvedSource(kind="file", path=source_path, files=(source_path,))
        if source_path.is_dir():
            files = tuple(list_source_files(source_path))
            if not files:
                raise SourceError(
                    f"No record files found under {source_path}. "
                    f"Supported extensions: {SUPPORTED_RECORD_EXTENSIONS}."
                )
            return ResolvedSource(kind="directory", path=source_path, files=files)
    if config.stream is not None:
        return ResolvedSource(kind="stream", stream=config.stream)
    if locator:
        raise SourceError(f"Source at {locator} is neither a regular file nor a directory.")
    raise ConfigError(
        "No input configured. Provide a directory, a file, or a stream of Amplitude exports."
    )


def list_source_files(directory: Path, order: str = ORDER_ASCENDING) -> list[Path]:
    """List immediate record files of a directory.

    Args:
        directory: Directory to scan, not recursively.
        order: ``ascending`` or ``descending`` by file name.

    Returns:
        Matching files in the requested order.
    """
    files = [
        entry
        for entry in directory.iterdir()
        if entry.is_file() and _is_supported_file(entry)
    ]
    return order_source_files(files, order)


def order_source_files(files: Iterable[Path], order: str) -> list[Path]:
    """Return files sorted by name in the requested order."""
    return sorted(files, key=lambda entry: entry.name, reverse=order == ORDER_DESCENDING)


def _is_supported_file(file_path: Path) -> bool:
    """Return whether a local file extension is supported."""
    return file_path.suffix.lower() in SUPPORTED_RECORD_EXTENSIONS
