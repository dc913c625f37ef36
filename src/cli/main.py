"""AmpMix CLI entry point.

This module maps command-line flags onto a ``MigrationConfig`` and runs
one migration through the SDK.
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from core.config import credentials_from_env
from core.constants import (
    DEFAULT_CUSTOM_ID_FIELD,
    MODE_MERGED,
    REGION_US,
    SUPPORTED_MODES,
    SUPPORTED_REGIONS,
)
from core.errors import AmpMixError, ConfigError
from core.run_log import RunLog
from core.types import MigrationConfig, MigrationResults
from ingest.pipeline import run_migration

SUCCESS_MESSAGE = "hooray! all done!"


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="ampmix",
        description="Import Amplitude export files into Mixpanel",
    )
    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument("--dir", help="Directory of uncompressed Amplitude NDJSON exports")
    source_group.add_argument("--file", help="Single uncompressed Amplitude NDJSON export")
    source_group.add_argument(
        "--stdin", action="store_true", help="Read Amplitude NDJSON from standard input"
    )
    parser.add_argument("--token", help="Mixpanel project token (default: $MP_TOKEN)")
    parser.add_argument("--secret", help="Mixpanel project secret (default: $MP_SECRET)")
    parser.add_argument("--project", help="Mixpanel project id (default: $MP_PROJECT)")
    parser.add_argument("--region", default=REGION_US, choices=SUPPORTED_REGIONS, help="Data residency")
    parser.add_argument(
        "--strict", action=argparse.BooleanOptionalAction, default=False, help="Strict event validation"
    )
    parser.add_argument(
        "--events", action=argparse.BooleanOptionalAction, default=True, help="Send events"
    )
    parser.add_argument(
        "--users", action=argparse.BooleanOptionalAction, default=True, help="Send user profiles"
    )
    parser.add_argument(
        "--groups", action=argparse.BooleanOptionalAction, default=False, help="Send group profiles"
    )
    parser.add_argument(
        "--dedupe",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Drop records with identical content",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug events")
    parser.add_argument("--logs", action="store_true", help="Write results to the logs directory")
    parser.add_argument(
        "--custom-user-id",
        default=DEFAULT_CUSTOM_ID_FIELD,
        help="Raw field to use as the Mixpanel user id",
    )
    parser.add_argument(
        "--mode",
        default=MODE_MERGED,
        choices=SUPPORTED_MODES,
        help="Import a directory as one stream or file by file",
    )
    parser.add_argument(
        "--tag", action="append", default=[], metavar="KEY=VALUE", help="Stamp a property on every record"
    )
    parser.add_argument(
        "--alias", action="append", default=[], metavar="OLD=NEW", help="Rename a property key"
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the AmpMix CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    run_log = RunLog(verbose=args.verbose)
    try:
        config = _build_config(args)
        results = run_migration(config, run_log=run_log)
    except AmpMixError as error:
        print(f"uh oh! something didn't work...\nthe error message is:\n\n\t{error}\n")
        return 1
    finally:
        run_log.complete()
    _print_summary(results)
    print(SUCCESS_MESSAGE)
    return 0


def _build_config(args: argparse.Namespace) -> MigrationConfig:
    """Build a migration config from parsed CLI args.

    Raises:
        ConfigError: If credentials or key/value flags are invalid.
    """
    env_credentials = credentials_from_env()
    secret = args.secret or (env_credentials.secret if env_credentials else "")
    token = args.token or (env_credentials.token if env_credentials else "")
    project = args.project or (env_credentials.project if env_credentials else "")
    return MigrationConfig(
        secret=secret,
        token=token,
        project=project,
        directory=args.dir,
        file=args.file,
        stream=sys.stdin.buffer if args.stdin else None,
        region=args.region,
        strict=args.strict,
        verbose=args.verbose,
        logs=args.logs,
        events=args.events,
        users=args.users,
        groups=args.groups,
        dedupe=args.dedupe,
        custom_user_id=args.custom_user_id,
        aliases=_parse_pairs(args.alias, "--alias"),
        tags=_parse_pairs(args.tag, "--tag"),
        mode=args.mode,
    )


def _parse_pairs(values: list[str], flag: str) -> dict[str, str]:
    """Parse repeated ``KEY=VALUE`` flags into a dictionary."""
    pairs: dict[str, str] = {}
    for value in values:
        key, separator, item = value.partition("=")
        if not separator or not key:
            raise ConfigError(f"Invalid {flag} value '{value}': expected KEY=VALUE.")
        pairs[key] = item
    return pairs


def _print_summary(results: MigrationResults) -> None:
    """Print one tab-separated summary row per record type."""
    for label, outcome in (
        ("events", results.events),
        ("users", results.users),
        ("groups", results.groups),
    ):
        print(
            f"{label}\t"
            f"success={outcome.success}\t"
            f"failed={outcome.failed}\t"
            f"skipped={outcome.skipped}\t"
            f"total={outcome.total}"
        )
