"""Streaming NDJSON readers for import sources.

Sources are read line by line so large exports never load into memory.
Lines stay undecoded until ``parse_record_line`` so one badly encoded row
fails alone instead of ending the whole read.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import IO, Any, Iterable, Iterator, Union

from importer.base import ImportSource

STREAM_LOCATION = "<stream>"

RawLine = Union[bytes, str]


def iter_source_lines(source: ImportSource) -> Iterator[tuple[str, RawLine]]:
    """Yield ``(location, line)`` for every non-blank line of a source.

    Args:
        source: File path, sequence of file paths, or binary stream.

    Returns:
        Iterator of location labels (``path:line``) and raw, undecoded rows.
        File and binary stream rows are bytes; text stream rows are str.
    """
    if isinstance(source, (str, Path)):
        yield from _iter_file_lines(Path(source))
    elif hasattr(source, "read"):
        yield from _iter_raw_lines(source, STREAM_LOCATION)  # type: ignore[arg-type]
    else:
        for file_path in source:  # type: ignore[union-attr]
            yield from _iter_file_lines(Path(file_path))


def parse_record_line(location: str, line: RawLine) -> dict[str, Any]:
    """Decode, parse and validate one NDJSON row.

    Args:
        location: ``path:line`` label for error context.
        line: Raw row as read from the source.

    Returns:
        Parsed JSON object.

    Raises:
        ValueError: If the row is not UTF-8, not valid JSON or not an object.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as error:
            raise ValueError(f"Invalid UTF-8 at {location}: {error.reason}") from error
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid JSON at {location}: {error.msg}") from error
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid record at {location}: expected JSON object")
    return payload


def _iter_file_lines(file_path: Path) -> Iterator[tuple[str, RawLine]]:
    """Yield non-blank raw lines of one local file."""
    with file_path.open("rb") as handle:
        yield from _iter_raw_lines(handle, str(file_path))


def _iter_raw_lines(lines: Iterable[RawLine] | IO[Any], label: str) -> Iterator[tuple[str, RawLine]]:
    for line_number, line in enumerate(lines, 1):
        stripped = line.strip()
        if stripped:
            yield f"{label}:{line_number}", stripped
