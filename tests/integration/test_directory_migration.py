"""Integration tests for directory migrations through the SDK surface."""

from __future__ import annotations

import gzip
import json
from pathlib import Path
from typing import Any

from ampmix import MigrationConfig, MixpanelImporter, RunLog, RuntimeConfig, run_migration
from tests.fixture_paths import fixture_path


class _AcceptingResponse:
    status_code = 200
    text = ""

    def __init__(self, payload: dict[str, Any]) -> None:
        self._payload = payload

    def json(self) -> dict[str, Any]:
        return self._payload


class _AcceptingSession:
    """Session double accepting every batch and keeping decoded bodies."""

    def __init__(self) -> None:
        self.bodies: dict[str, list[dict[str, Any]]] = {}

    def post(self, url: str, **kwargs: Any) -> _AcceptingResponse:
        body = kwargs["data"]
        if kwargs["headers"].get("Content-Encoding") == "gzip":
            body = gzip.decompress(body)
        records = json.loads(body)
        self.bodies.setdefault(url.rsplit("/", 1)[-1], []).extend(records)
        if url.endswith("/import"):
            return _AcceptingResponse({"code": 200, "num_records_imported": len(records)})
        return _AcceptingResponse({"status": 1, "error": None})


def test_directory_migration_end_to_end(tmp_path: Path) -> None:
    """A directory export should land in Mixpanel as events and user profiles."""
    session = _AcceptingSession()
    runtime = RuntimeConfig(logs_dir=tmp_path / "logs", max_retries=0, request_timeout=5)
    run_log = RunLog()
    config = MigrationConfig(
        secret="secret",
        token="token",
        project=12345,
        directory=str(fixture_path("amplitude_export")),
        logs=True,
    )

    results = run_migration(
        config,
        importer=MixpanelImporter(runtime, session=session),
        run_log=run_log,
        runtime=runtime,
    )

    assert (results.events.success, results.events.failed) == (3, 0)
    assert (results.users.success, results.users.duplicates) == (3, 0)
    assert results.groups.total == 0
    events = session.bodies["import"]
    assert {event["properties"]["time"] for event in events} == {1704067200000}
    assert {event["properties"]["$user_id"] for event in events} == {"u1"}
    assert session.bodies["engage"] == [
        {"$distinct_id": "u1", "$ip": None, "$set": {"plan": "pro"}, "$token": "token"}
    ] * 3
    assert run_log.completed
    assert len(list((tmp_path / "logs").glob("amplitude-import-*.json"))) == 1


def test_badly_encoded_row_keeps_pipeline_counters(tmp_path: Path) -> None:
    """One undecodable row should fail alone without zeroing the event outcome."""
    export_dir = tmp_path / "export"
    export_dir.mkdir()
    (export_dir / "2024-01-01_1#0.json").write_bytes(
        b'{"event_type": "login", "user_id": "u1", "event_time": "2024-01-01T00:00:00Z"}\n'
        b'{"event_type": "\xff"}\n'
        b'{"event_type": "logout", "user_id": "u1", "event_time": "2024-01-01T00:00:00Z"}\n'
    )
    session = _AcceptingSession()
    runtime = RuntimeConfig(logs_dir=tmp_path / "logs", max_retries=0, request_timeout=5)
    config = MigrationConfig(
        secret="secret",
        token="token",
        project="12345",
        directory=str(export_dir),
        users=False,
    )

    results = run_migration(
        config,
        importer=MixpanelImporter(runtime, session=session),
        runtime=runtime,
    )

    assert (results.events.total, results.events.success, results.events.failed) == (3, 2, 1)
    assert [event["event"] for event in session.bodies["import"]] == ["login", "logout"]
