"""KoraDB CLI entry points.
This module exposes record commands against a local data root.
It maps argparse commands onto collection calls and prints envelopes.
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
import json
from pathlib import Path
from typing import Any, Sequence

from cli.sync_command import SYNC_COMMANDS, add_sync_commands, run_sync_command
from core.config import KoraConfig
from core.errors import KoraError
from core.logging_config import configure_logging
from core.types import OperationResult, Status, failure, success
from store.collection import Collection
from store.database import Database


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="koradb", description="KoraDB record store CLI")
    parser.add_argument("--data-root", help="Override KORA_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_insert_command(subparsers)
    _add_get_command(subparsers)
    _add_find_command(subparsers)
    _add_update_command(subparsers)
    _add_delete_command(subparsers)
    _add_list_command(subparsers)
    add_sync_commands(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the KoraDB CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _build_config(args.data_root)
    except KoraError as error:
        print(f"config_error={error}")
        return 1
    configure_logging(config.log_level)
    return asyncio.run(_run_command(config, args))


def _build_config(data_root: str | None) -> KoraConfig:
    """Build runtime config with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Validated configuration.
    """
    config = KoraConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return config


async def _run_command(config: KoraConfig, args: argparse.Namespace) -> int:
    """Open the collection, run one command, and flush before exit.

    Args:
        config: Runtime configuration.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    database = Database(config)
    try:
        await database.init()
        collection = await database.get_collection(args.collection)
        if args.command in SYNC_COMMANDS:
            result = await run_sync_command(collection, args)
        else:
            result = await _run_record_command(collection, args)
    except KoraError as error:
        print(f"store_error={error}")
        return 1
    finally:
        await database.close()
    print(json.dumps(result.to_dict(), sort_keys=True))
    return 0 if result.ok else 1


async def _run_record_command(collection: Collection, args: argparse.Namespace) -> OperationResult:
    """Dispatch a record command.

    Args:
        collection: Target collection.
        args: Parsed CLI args.

    Returns:
        Operation envelope.
    """
    if args.command == "insert":
        payload = _parse_json_argument(args.payload)
        if payload is None:
            return failure(Status.INVALID_DATA)
        return await collection.insert(payload)
    if args.command == "get":
        return await collection.find_by_id(args.id)
    if args.command == "find":
        if args.index:
            await collection.add_index_field(args.field)
        return await collection.find_by_field(args.field, _parse_value(args.value))
    if args.command == "update":
        updates = _parse_json_argument(args.payload)
        if updates is None:
            return failure(Status.INVALID_DATA)
        return await collection.update(args.id, updates)
    if args.command == "delete":
        return await collection.delete(args.id)
    return success(await collection.read_all())


def _parse_json_argument(raw_value: str) -> Any:
    """Parse a JSON payload argument, returning None when malformed."""
    try:
        return json.loads(raw_value)
    except json.JSONDecodeError:
        return None


def _parse_value(raw_value: str) -> Any:
    """Interpret a lookup value as JSON, falling back to the raw string."""
    try:
        return json.loads(raw_value)
    except json.JSONDecodeError:
        return raw_value


def _add_insert_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("insert", help="Insert a JSON object as a new record")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("payload", help="JSON object with record fields")


def _add_get_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("get", help="Find a record by id")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("id", help="Record id")


def _add_find_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("find", help="Find the first record with a field value")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("field", help="Field name")
    parser.add_argument("value", help="Value, parsed as JSON when possible")
    parser.add_argument(
        "--index",
        action="store_true",
        help="Build an index on the field before looking it up",
    )


def _add_update_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("update", help="Merge JSON fields into a record")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("id", help="Record id")
    parser.add_argument("payload", help="JSON object with fields to merge")


def _add_delete_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("delete", help="Delete a record by id")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("id", help="Record id")


def _add_list_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("list", help="Print every record of a collection")
    parser.add_argument("collection", help="Collection name")
