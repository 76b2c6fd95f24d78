"""CLI module for master/slave database structure comparison.

Provides commands to compare two configured servers, list profiles, and
dump a single server's structural snapshot.

Usage:
    db-schema-diff compare
    db-schema-diff compare --master prod --slave replica --format table
    db-schema-diff compare --fail-on-drift
    db-schema-diff profiles
    db-schema-diff snapshot --profile prod

Commands:
    compare   - Compare master and slave database structure
    profiles  - List available profiles
    snapshot  - Print one server's schema snapshot as JSON

Exit codes:
    0 - comparison computed (or informational command succeeded)
    1 - connection, extraction or configuration failure
    2 - drift found and --fail-on-drift given
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from db_schema_diff.config.loader import load_diff_config
from db_schema_diff.factory import compare_profiles, snapshot_profile
from db_schema_diff.schema.models import ComparisonResult, DiffReport

console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_DRIFT = 2


def _config_path(args: argparse.Namespace) -> Path | None:
    config = getattr(args, "config", None)
    return Path(config) if config else None


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


# ============================================================================
# Report rendering
# ============================================================================


def _report_table(title: str, report: DiffReport) -> Table:
    """Render one diff direction as a rich table."""
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Level", style="dim")
    table.add_column("Entry")

    rows = [
        ("schema", report.missing_schemas),
        ("table", report.missing_tables),
        ("column", report.missing_columns),
        ("data type", report.mismatched_columns),
    ]
    for level, entries in rows:
        for entry in entries:
            table.add_row(level, entry)

    return table


def _print_result_table(result: ComparisonResult) -> None:
    """Print a comparison result as rich tables."""
    if not result.success:
        for error in result.messages.error:
            console.print(f"[bold red]x[/bold red] {error}")
        return

    for info in result.messages.info:
        console.print(info, style="dim")

    if not result.has_drift:
        console.print()
        console.print("[bold green]v[/bold green] No structural drift")
        return

    sections = [
        ("Not on Master server DB", result.data.not_exist_on_master),
        ("Not on Slave server DB", result.data.not_exist_on_slave),
    ]
    for title, report in sections:
        if report is not None and not report.is_empty:
            console.print()
            console.print(_report_table(title, report))


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_compare(args: argparse.Namespace) -> int:
    """Async implementation for compare command.

    Args:
        args: Parsed arguments with master, slave, format, fail_on_drift,
            config and env_prefix.

    Returns:
        0 on success, 1 on failure, 2 on drift with --fail-on-drift.
    """
    result = await compare_profiles(
        master_profile=args.master,
        slave_profile=args.slave,
        config_path=_config_path(args),
        env_prefix=getattr(args, "env_prefix", ""),
    )

    if args.format == "table":
        _print_result_table(result)
    else:
        # Plain print so the output stays machine-readable
        print(result.to_json(indent=args.indent))

    if not result.success:
        return EXIT_FAILURE
    if args.fail_on_drift and result.has_drift:
        return EXIT_DRIFT
    return EXIT_OK


async def _async_snapshot(args: argparse.Namespace) -> int:
    """Async implementation for snapshot command.

    Returns:
        0 on success, 1 on failure.
    """
    result = await snapshot_profile(args.profile, config_path=_config_path(args))

    if not result.success:
        err_console.print(f"[bold red]x[/bold red] {result.error}")
        return EXIT_FAILURE

    print(json.dumps(result.snapshot.to_mapping(), indent=args.indent))
    return EXIT_OK


# ============================================================================
# Sync command wrappers
# ============================================================================


def cmd_compare(args: argparse.Namespace) -> int:
    """Compare master and slave database structure.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_compare(args))


def cmd_snapshot(args: argparse.Namespace) -> int:
    """Print one profile's schema snapshot.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_snapshot(args))


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db-diff.toml.

    Reads only local TOML config -- no database calls.

    Returns:
        0 on success, 1 if db-diff.toml not found or invalid.
    """
    try:
        config = load_diff_config(_config_path(args))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_FAILURE

    table = Table(title="Server Profiles", show_header=True, header_style="bold")
    table.add_column("Role", width=6)
    table.add_column("Profile")
    table.add_column("Server")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        if name == config.master_profile:
            role = "[bold cyan]master[/bold cyan]"
        elif name == config.slave_profile:
            role = "[bold magenta]slave[/bold magenta]"
        else:
            role = ""

        missing = profile.missing_options()
        if missing:
            server = f"[yellow]incomplete: {', '.join(missing)}[/yellow]"
        else:
            server = f"{profile.user}@{profile.host}:{profile.port}/{profile.database_name}"

        table.add_row(role, name, server, profile.description)

    console.print(table)
    return EXIT_OK


# ============================================================================
# Main entry point
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors or drift).
    """
    parser = argparse.ArgumentParser(
        prog="db-schema-diff",
        description="Compare the structure of a master and a slave PostgreSQL database",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to db-diff.toml (default: ./db-diff.toml)",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_DIFF_MASTER)"
        ),
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log connection and extraction details to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # compare command
    p_compare = subparsers.add_parser(
        "compare",
        help="Compare master and slave database structure",
    )
    p_compare.add_argument("--master", "-m", default=None, help="Master profile name")
    p_compare.add_argument("--slave", "-s", default=None, help="Slave profile name")
    p_compare.add_argument(
        "--format",
        choices=["json", "table"],
        default="json",
        help="Output format (default: json)",
    )
    p_compare.add_argument(
        "--indent",
        type=int,
        default=None,
        help="Indent JSON output by this many spaces",
    )
    p_compare.add_argument(
        "--fail-on-drift",
        action="store_true",
        help="Exit with code 2 when any structural drift is found",
    )
    p_compare.set_defaults(func=cmd_compare)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    # snapshot command
    p_snapshot = subparsers.add_parser(
        "snapshot",
        help="Print one server's schema snapshot as JSON",
    )
    p_snapshot.add_argument("--profile", "-p", required=True, help="Profile name")
    p_snapshot.add_argument(
        "--indent",
        type=int,
        default=2,
        help="Indent JSON output by this many spaces",
    )
    p_snapshot.set_defaults(func=cmd_snapshot)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
