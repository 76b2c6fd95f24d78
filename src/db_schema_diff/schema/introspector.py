"""PostgreSQL schema introspection via information_schema.

This module queries the live database to extract a structural snapshot:
- Schemas (excluding catalog schemas)
- Tables (from pg_tables, so views are not included)
- Columns and their normalized data-type descriptors

Uses psycopg (v3) async connections.
"""

import logging
from collections.abc import Iterable

import psycopg

from db_schema_diff.config.models import DEFAULT_EXCLUDED_SCHEMAS
from db_schema_diff.schema.models import DatabaseSnapshot, SnapshotResult

logger = logging.getLogger(__name__)


# Verbose information_schema type names mapped to their short form
_TYPE_ALIASES = {
    "character varying": "varchar",
    "character": "char",
}

_STRUCTURE_QUERY = """
    SELECT
        t.schemaname AS table_schema,
        t.tablename AS table_name,
        c.column_name,
        c.data_type,
        c.character_maximum_length
    FROM pg_tables AS t
    LEFT JOIN information_schema.columns AS c
        ON c.table_schema = t.schemaname
        AND c.table_name = t.tablename
    WHERE t.schemaname <> ALL(%s)
    ORDER BY t.schemaname, t.tablename, c.column_name
"""


def normalize_data_type(data_type: str | None, max_length: int | None = None) -> str:
    """Build the data-type descriptor compared between servers.

    Character types with a declared maximum length become
    ``<base>(<length>)``; everything else is the bare lower-cased base name.

    Examples:
        >>> normalize_data_type("character varying", 50)
        'varchar(50)'
        >>> normalize_data_type("integer")
        'integer'
    """
    if not data_type:
        return ""
    base = data_type.strip().lower()
    base = _TYPE_ALIASES.get(base, base)
    if max_length is not None:
        return f"{base}({max_length})"
    return base


class SchemaIntrospector:
    """Introspects PostgreSQL database structure.

    Uses pg_tables joined with information_schema.columns in a single query.
    Works with any PostgreSQL database (RDS, Supabase, local).

    Usage:
        async with SchemaIntrospector("host=localhost dbname=app") as introspector:
            # Raises on failure
            snapshot = await introspector.introspect()

            # Or capture failure as data
            result = await introspector.extract()
    """

    EXCLUDED_SCHEMAS_DEFAULT = set(DEFAULT_EXCLUDED_SCHEMAS)

    def __init__(
        self,
        conninfo: str,
        excluded_schemas: Iterable[str] | None = None,
        connect_timeout: int = 10,
    ):
        """Initialize with database connection string.

        Args:
            conninfo: libpq connection string or PostgreSQL URL
            excluded_schemas: Schemas to leave out of the snapshot
                (default: information_schema, pg_catalog)
            connect_timeout: Seconds to wait for the connection
        """
        self._conninfo = conninfo
        self._excluded_schemas = (
            set(excluded_schemas)
            if excluded_schemas is not None
            else set(self.EXCLUDED_SCHEMAS_DEFAULT)
        )
        self._connect_timeout = connect_timeout
        self._conn: psycopg.AsyncConnection | None = None

    async def connect(self) -> None:
        """Open the connection. psycopg errors propagate to the caller."""
        self._conn = await psycopg.AsyncConnection.connect(
            self._conninfo,
            connect_timeout=self._connect_timeout,
        )

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def __aenter__(self) -> "SchemaIntrospector":
        """Context manager entry - opens connection."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes connection."""
        await self.close()

    @property
    def connected(self) -> bool:
        return self._conn is not None

    async def test_connection(self) -> bool:
        """Run ``SELECT 1`` against the open connection.

        Raises:
            RuntimeError: If not connected
            ConnectionError: If the query fails
        """
        if not self._conn:
            raise RuntimeError("Introspector not connected. Use async with statement.")

        try:
            async with self._conn.cursor() as cur:
                await cur.execute("SELECT 1")
                await cur.fetchone()
        except psycopg.Error as e:
            raise ConnectionError(f"Connection test failed: {e}") from e
        return True

    async def introspect(self) -> DatabaseSnapshot:
        """Read the full structure of every user schema.

        Returns:
            DatabaseSnapshot of schema -> table -> column -> data type

        Raises:
            RuntimeError: If not connected
            psycopg.Error: If the catalog query fails
        """
        if not self._conn:
            raise RuntimeError("Introspector not connected. Use async with statement.")

        async with self._conn.cursor() as cur:
            await cur.execute(_STRUCTURE_QUERY, (sorted(self._excluded_schemas),))
            rows = await cur.fetchall()

        logger.debug(f"Structure query returned {len(rows)} rows")

        snapshot = DatabaseSnapshot.from_rows(
            (
                schema_name,
                table_name,
                column_name,
                normalize_data_type(data_type, max_length),
            )
            for schema_name, table_name, column_name, data_type, max_length in rows
        )
        logger.info(
            f"Snapshot: {len(snapshot.schemas)} schemas, "
            f"{snapshot.table_count} tables, {snapshot.column_count} columns"
        )
        return snapshot

    async def extract(self) -> SnapshotResult:
        """Read the structure, capturing any failure in the result.

        Never raises. An empty snapshot with ``success=True`` means the
        database has no user tables.
        """
        try:
            snapshot = await self.introspect()
        except (RuntimeError, psycopg.Error) as e:
            logger.warning(f"Schema extraction failed: {e}")
            return SnapshotResult(success=False, error=str(e))
        return SnapshotResult(success=True, snapshot=snapshot)
