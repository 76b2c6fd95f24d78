"""Server connection and master/slave comparison.

Resolves server options into connection strings, opens one introspector per
server, extracts both snapshots and compares them. The comparison entry
points never raise: every failure is returned as a ``ComparisonResult``
with ``result=0`` and a message in ``messages.error``.

Usage:
    from db_schema_diff.factory import compare_databases, compare_profiles

    result = await compare_databases(
        {"ip": "10.0.0.1", "dbPort": "5432", "dbName": "app",
         "dbUser": "postgres", "dbUserPassword": ""},
        {"ip": "10.0.0.2", "dbPort": "5432", "dbName": "app",
         "dbUser": "postgres", "dbUserPassword": ""},
    )

    # Or with profiles from db-diff.toml
    result = await compare_profiles("prod", "replica")
    print(result.to_json())
"""

import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from psycopg.conninfo import make_conninfo

from db_schema_diff.config.loader import load_diff_config
from db_schema_diff.config.models import DiffConfig, ServerOptions
from db_schema_diff.schema.comparator import compare_snapshots
from db_schema_diff.schema.introspector import SchemaIntrospector
from db_schema_diff.schema.models import ComparisonResult, SnapshotResult

logger = logging.getLogger(__name__)

MASTER = "Master"
SLAVE = "Slave"


class ProfileNotFoundError(Exception):
    """Raised when no server profile is configured for a side."""

    pass


# ============================================================================
# Profile Resolution
# ============================================================================


def get_profile_names(
    master_profile: str | None = None,
    slave_profile: str | None = None,
    config: DiffConfig | None = None,
    env_prefix: str = "",
) -> tuple[str, str]:
    """Resolve master and slave profile names.

    Priority for each side:
    1. Explicit argument
    2. ``{env_prefix}DB_DIFF_MASTER`` / ``{env_prefix}DB_DIFF_SLAVE`` env var
    3. ``[compare]`` master / slave in db-diff.toml
    4. Raise ProfileNotFoundError

    Returns:
        Tuple of (master_profile, slave_profile)

    Raises:
        ProfileNotFoundError: If a side has no profile configured
    """
    resolved = []
    for side, explicit, env_name, configured in (
        (MASTER, master_profile, f"{env_prefix}DB_DIFF_MASTER",
         config.master_profile if config else None),
        (SLAVE, slave_profile, f"{env_prefix}DB_DIFF_SLAVE",
         config.slave_profile if config else None),
    ):
        name = explicit or os.environ.get(env_name) or configured
        if not name:
            raise ProfileNotFoundError(
                f"No {side.lower()} profile configured.\n"
                f"Pass --{side.lower()} <name>, set {env_name}, or add "
                f"'{side.lower()} = \"<name>\"' to the [compare] table of db-diff.toml"
            )
        resolved.append(name)
    return resolved[0], resolved[1]


def get_profile(config: DiffConfig, profile_name: str) -> ServerOptions:
    """Look up a profile by name.

    Raises:
        ProfileNotFoundError: If the profile is not in db-diff.toml
    """
    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys()) or "none"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in db-diff.toml. "
            f"Available: {available}"
        )
    return config.profiles[profile_name]


# ============================================================================
# Connection
# ============================================================================


def resolve_conninfo(options: ServerOptions) -> str:
    """Build a libpq connection string from server options.

    An empty password is left out so libpq can fall back to ~/.pgpass.

    Raises:
        ValueError: If required options are missing
    """
    missing = options.missing_options()
    if missing:
        raise ValueError(f"Missing server options: {', '.join(missing)}")

    return make_conninfo(
        host=options.host,
        port=options.port,
        dbname=options.database_name,
        user=options.user,
        password=options.password or None,
    )


def _as_server_options(options: ServerOptions | Mapping[str, Any] | None) -> ServerOptions:
    if isinstance(options, ServerOptions):
        return options
    if options is None:
        options = {}
    if not isinstance(options, Mapping):
        raise ValueError(f"Server options must be a mapping, got {type(options).__name__}")
    return ServerOptions.model_validate(dict(options))


async def _open_introspector(
    side: str,
    options: ServerOptions | Mapping[str, Any] | None,
    excluded_schemas: Iterable[str] | None,
    connect_timeout: int,
) -> tuple[SchemaIntrospector | None, str | None]:
    """Connect one side. Returns (introspector, None) or (None, error message)."""
    try:
        server_options = _as_server_options(options)
        conninfo = resolve_conninfo(server_options)
    except ValueError as e:
        # pydantic.ValidationError is a ValueError
        logger.warning(f"{side} server options rejected: {e}")
        return None, f"Failed to connect to {side} server DB: {e}"

    introspector = SchemaIntrospector(
        conninfo,
        excluded_schemas=excluded_schemas,
        connect_timeout=connect_timeout,
    )
    try:
        await introspector.connect()
    except Exception as e:
        logger.warning(f"{side} server connection failed: {e}")
        return None, f"Failed to connect to {side} server DB: {e}"

    logger.debug(f"Connected to {side} server DB at {server_options.host}:{server_options.port}")
    return introspector, None


# ============================================================================
# Comparison
# ============================================================================


async def compare_databases(
    master_options: ServerOptions | Mapping[str, Any] | None,
    slave_options: ServerOptions | Mapping[str, Any] | None,
    excluded_schemas: Iterable[str] | None = None,
    connect_timeout: int = 10,
) -> ComparisonResult:
    """Compare the structure of the master and slave databases.

    Both connections are attempted before either failure is reported;
    the master side is checked first.

    Args:
        master_options: Master server options (``ServerOptions`` or a mapping
            using either the snake_case or the legacy option keys).
        slave_options: Slave server options.
        excluded_schemas: Schemas left out of both snapshots.
        connect_timeout: Seconds to wait for each connection.

    Returns:
        ``ComparisonResult``; ``result=0`` with a single error on connection
        or extraction failure, ``result=1`` with both diff directions
        otherwise.

    Example:
        >>> result = await compare_databases(master_opts, slave_opts)
        >>> if result.success:
        ...     print(result.data.not_exist_on_slave.format_report())
        ... else:
        ...     print(result.messages.error[0])
    """
    if excluded_schemas is not None:
        excluded_schemas = list(excluded_schemas)

    master, master_error = await _open_introspector(
        MASTER, master_options, excluded_schemas, connect_timeout
    )
    slave, slave_error = await _open_introspector(
        SLAVE, slave_options, excluded_schemas, connect_timeout
    )

    try:
        if master_error:
            return ComparisonResult.failure(master_error)
        if slave_error:
            return ComparisonResult.failure(slave_error)

        master_snapshot = await master.extract()
        slave_snapshot = await slave.extract()

        for side, snapshot_result in ((MASTER, master_snapshot), (SLAVE, slave_snapshot)):
            if not snapshot_result.success:
                return ComparisonResult.failure(
                    f"Failed to read schema structure of {side} server DB: "
                    f"{snapshot_result.error}"
                )

        return compare_snapshots(master_snapshot.snapshot, slave_snapshot.snapshot)

    finally:
        if master is not None:
            await master.close()
        if slave is not None:
            await slave.close()


async def compare_profiles(
    master_profile: str | None = None,
    slave_profile: str | None = None,
    config_path: Path | None = None,
    env_prefix: str = "",
) -> ComparisonResult:
    """Compare two servers configured as profiles in db-diff.toml.

    ``excluded_schemas`` and ``connect_timeout`` come from the ``[compare]``
    table. Configuration problems are returned as ``result=0``.

    Args:
        master_profile: Master profile name (see ``get_profile_names``).
        slave_profile: Slave profile name.
        config_path: Path to db-diff.toml (default: ./db-diff.toml).
        env_prefix: Prefix for environment variable lookup.

    Returns:
        ``ComparisonResult``
    """
    try:
        config = load_diff_config(config_path)
        master_name, slave_name = get_profile_names(
            master_profile, slave_profile, config, env_prefix
        )
        master_options = get_profile(config, master_name)
        slave_options = get_profile(config, slave_name)
    except (FileNotFoundError, ValueError, ProfileNotFoundError) as e:
        logger.warning(f"Comparison not started: {e}")
        return ComparisonResult.failure(str(e))

    logger.info(f"Comparing profiles: master={master_name} slave={slave_name}")

    return await compare_databases(
        master_options,
        slave_options,
        excluded_schemas=config.excluded_schemas,
        connect_timeout=config.connect_timeout,
    )


async def snapshot_profile(
    profile_name: str,
    config_path: Path | None = None,
) -> SnapshotResult:
    """Extract the structure of a single profile's database.

    Returns:
        ``SnapshotResult``; configuration and connection problems are
        returned as ``success=False``.
    """
    try:
        config = load_diff_config(config_path)
        options = get_profile(config, profile_name)
    except (FileNotFoundError, ValueError, ProfileNotFoundError) as e:
        return SnapshotResult(success=False, error=str(e))

    introspector, error = await _open_introspector(
        profile_name, options, config.excluded_schemas, config.connect_timeout
    )
    if error:
        return SnapshotResult(success=False, error=error)

    try:
        return await introspector.extract()
    finally:
        await introspector.close()
