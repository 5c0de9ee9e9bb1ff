"""Sync command wiring for KoraDB CLI."""

from __future__ import annotations

import argparse
from typing import Any

from core.types import OperationResult
from store.collection import Collection

SYNC_COMMANDS = ("pull", "push")


def add_sync_commands(subparsers: Any) -> None:
    """Register pull and push subcommands."""
    pull_parser = subparsers.add_parser(
        "pull",
        help="Insert every item returned by a remote JSON array endpoint",
    )
    pull_parser.add_argument("collection", help="Collection name")
    pull_parser.add_argument("url", help="Endpoint answering GET with a JSON array")
    push_parser = subparsers.add_parser(
        "push",
        help="Send all records of a collection to a remote endpoint",
    )
    push_parser.add_argument("collection", help="Collection name")
    push_parser.add_argument("url", help="Endpoint accepting a JSON array body")


async def run_sync_command(collection: Collection, args: argparse.Namespace) -> OperationResult:
    """Configure sync for the collection and run one direction."""
    collection.configure_sync(args.url)
    if args.command == "pull":
        return await collection.sync_pull()
    return await collection.sync_push()
