"""Command-line interface: logging setup, argument parsing and dispatch."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog
from pydantic import ValidationError

from datalake_acl.acl.models import PropagationScope
from datalake_acl.client import DataLakeAclClient
from datalake_acl.config import get_settings
from datalake_acl.errors import DataLakeAclError


def configure_logging(
    log_level: str = "INFO",
    log_file: str = "",
    log_file_max_bytes: int = 10_485_760,
    log_file_backup_count: int = 5,
) -> None:
    """Configure structlog on top of standard library logging.

    Log records go to stderr so command output on stdout stays parseable.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file. Empty string = console only.
        log_file_max_bytes: Max size per log file before rotation (default: 10 MB)
        log_file_backup_count: Number of rotated backup files to keep (default: 5)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.root
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=log_file,
            maxBytes=log_file_max_bytes,
            backupCount=log_file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(file_handler)

    # The Azure SDK logs every HTTP request at INFO
    logging.getLogger("azure").setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if log_file else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


def _add_account_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--subscription", required=True, help="Subscription name or id")
    parser.add_argument("--resource-group", required=True)
    parser.add_argument("--storage-account", required=True)


def _add_propagation_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--propagation",
        choices=["recursive", "single-node"],
        default="recursive",
        help="Write to the whole subtree (default) or only the target folder",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="datalake-acl",
        description="Manage Data Lake Storage Gen2 folders and ACLs by identity name",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    resolve_cmd = sub.add_parser("resolve-identity", help="Resolve a UPN or display name")
    resolve_cmd.add_argument("identity")

    subscription_cmd = sub.add_parser("subscription", help="Show subscription details")
    subscription_cmd.add_argument("subscription")

    create_cmd = sub.add_parser("create-folder", help="Create a folder hierarchy")
    _add_account_arguments(create_cmd)
    create_cmd.add_argument("--container", required=True)
    create_cmd.add_argument("--path", required=True)
    create_cmd.add_argument("--error-if-exists", action="store_true")

    delete_cmd = sub.add_parser("delete-folder", help="Delete a folder and its contents")
    _add_account_arguments(delete_cmd)
    delete_cmd.add_argument("--container", required=True)
    delete_cmd.add_argument("--path", required=True)
    delete_cmd.add_argument("--error-if-missing", action="store_true")

    move_cmd = sub.add_parser("move-folder", help="Move a folder, overwriting the destination")
    _add_account_arguments(move_cmd)
    move_cmd.add_argument("--source-container", required=True)
    move_cmd.add_argument("--source-path", required=True)
    move_cmd.add_argument("--dest-container")
    move_cmd.add_argument("--dest-path", required=True)

    set_cmd = sub.add_parser("set-acl", help="Grant an identity Read or Write on a folder")
    _add_account_arguments(set_cmd)
    set_cmd.add_argument("--container", required=True)
    set_cmd.add_argument("--path", required=True)
    set_cmd.add_argument("--identity", required=True)
    set_cmd.add_argument("--access", choices=["Read", "Write"], required=True)
    set_cmd.add_argument("--include-default-scope", action="store_true")
    set_cmd.add_argument("--set-container-acl", action="store_true")
    _add_propagation_argument(set_cmd)

    get_cmd = sub.add_parser("get-acl", help="List named ACL entries of a folder")
    _add_account_arguments(get_cmd)
    get_cmd.add_argument("--container", required=True)
    get_cmd.add_argument("--path", default="")

    remove_cmd = sub.add_parser("remove-acl", help="Remove an identity from a folder ACL")
    _add_account_arguments(remove_cmd)
    remove_cmd.add_argument("--container", required=True)
    remove_cmd.add_argument("--identity", required=True)
    remove_cmd.add_argument("--path", default="")
    _add_propagation_argument(remove_cmd)

    return parser


def _propagation(value: str) -> PropagationScope:
    if value == "single-node":
        return PropagationScope.SINGLE_NODE
    return PropagationScope.RECURSIVE


def run_command(client: DataLakeAclClient, args: argparse.Namespace) -> object:
    """Dispatch parsed arguments to the client. Returns a JSON-serializable result."""
    account = (args.subscription, args.resource_group, args.storage_account) \
        if hasattr(args, "storage_account") else ()

    if args.command == "resolve-identity":
        return client.resolve_identity(args.identity).to_dict()
    if args.command == "subscription":
        return client.get_subscription_info(args.subscription).to_dict()
    if args.command == "create-folder":
        handle = client.create_folder(
            *account, args.container, args.path, error_if_exists=args.error_if_exists,
        )
        return handle.to_dict()
    if args.command == "delete-folder":
        client.delete_folder(
            *account, args.container, args.path, error_if_missing=args.error_if_missing,
        )
        return {"deleted": f"{args.container}/{args.path}"}
    if args.command == "move-folder":
        handle = client.move_folder(
            *account, args.source_container, args.source_path, args.dest_path,
            dest_container=args.dest_container,
        )
        return handle.to_dict()
    if args.command == "set-acl":
        summary = client.set_folder_acl(
            *account, args.container, args.path, args.identity, args.access,
            include_default_scope=args.include_default_scope,
            set_container_acl=args.set_container_acl,
            propagation=_propagation(args.propagation),
        )
        return asdict(summary)
    if args.command == "get-acl":
        entries = client.get_folder_acl(*account, args.container, args.path)
        return [entry.to_dict() for entry in entries]
    if args.command == "remove-acl":
        summary = client.remove_folder_acl(
            *account, args.container, args.identity, args.path,
            propagation=_propagation(args.propagation),
        )
        return asdict(summary)
    raise ValueError(f"Unknown command: {args.command}")



def _settings_error(exc: ValidationError) -> str:
    fields = sorted({str(error["loc"][0]) for error in exc.errors() if error.get("loc")})
    return f"Invalid or missing settings: {', '.join(fields)}"


def run(argv: list[str] | None = None) -> int:
    """Parse ``argv``, run one command and print its JSON result."""
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"ConfigurationError: {_settings_error(exc)}", file=sys.stderr)
        return 1

    configure_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        log_file_max_bytes=settings.log_file_max_bytes,
        log_file_backup_count=settings.log_file_backup_count,
    )
    logger.debug("command_started", command=args.command)

    try:
        result = run_command(DataLakeAclClient(settings), args)
    except DataLakeAclError as exc:
        logger.error(
            "command_failed",
            command=args.command,
            error_type=type(exc).__name__,
            **exc.context,
        )
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        logger.error("command_rejected", command=args.command, error=str(exc))
        print(f"InvalidArgument: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0
