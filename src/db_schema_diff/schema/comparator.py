"""Structural comparison of two schema snapshots using set operations.

Compares a first snapshot against a second at four levels: schemas,
tables, columns and column data types. A schema or table missing from the
second snapshot is reported once and its contents are not compared further.
Pure logic -- no I/O, no database connections.

Usage:
    from db_schema_diff.schema.comparator import compare_snapshots, diff_snapshots

    report = diff_snapshots(master_snapshot, slave_snapshot)
    print(report.format_report())

    result = compare_snapshots(master_snapshot, slave_snapshot)
    print(result.to_json(indent=2))
"""

import logging
from collections.abc import Iterable

from db_schema_diff.schema.models import (
    ComparisonData,
    ComparisonMessages,
    ComparisonResult,
    DatabaseSnapshot,
    DiffReport,
    SchemaSnapshot,
    TableSnapshot,
)

logger = logging.getLogger(__name__)


def _ordered_difference(first: Iterable[str], second: Iterable[str]) -> list[str]:
    """Names in *first* that are not in *second*, in *first* order."""
    second_names = set(second)
    return [name for name in first if name not in second_names]


def _ordered_intersection(first: Iterable[str], second: Iterable[str]) -> list[str]:
    """Names in both, in *first* order."""
    second_names = set(second)
    return [name for name in first if name in second_names]


def _diff_columns(
    schema_name: str,
    first: TableSnapshot,
    second: TableSnapshot,
) -> tuple[list[str], list[str]]:
    """Missing and mismatched columns of one table present on both sides."""
    prefix = f"{schema_name}.{first.name}"

    missing = [
        f"{prefix}.{column}"
        for column in _ordered_difference(first.column_names(), second.column_names())
    ]

    mismatched: list[str] = []
    for column in _ordered_intersection(first.column_names(), second.column_names()):
        first_type = first.columns[column]
        second_type = second.columns[column]
        if first_type != second_type:
            mismatched.append(f"{prefix}.{column} ({first_type} != {second_type})")

    return missing, mismatched


def _diff_tables(first: SchemaSnapshot, second: SchemaSnapshot) -> DiffReport:
    """Missing tables of one schema present on both sides, plus their column diff."""
    missing_tables = [
        f"{first.name}.{table}"
        for table in _ordered_difference(first.table_names(), second.table_names())
    ]

    missing_columns: list[str] = []
    mismatched_columns: list[str] = []
    for table_name in _ordered_intersection(first.table_names(), second.table_names()):
        missing, mismatched = _diff_columns(
            first.name, first.tables[table_name], second.tables[table_name]
        )
        missing_columns.extend(missing)
        mismatched_columns.extend(mismatched)

    return DiffReport(
        missing_tables=missing_tables,
        missing_columns=missing_columns,
        mismatched_columns=mismatched_columns,
    )


def diff_snapshots(first: DatabaseSnapshot, second: DatabaseSnapshot) -> DiffReport:
    """Find what *first* has that *second* lacks or declares differently.

    One-directional: call twice with the arguments swapped for the full
    picture (see ``compare_snapshots``).

    Performs order-preserving set differences to find:
    - Missing schemas: schemas in *first* but not in *second*
    - Missing tables: ``schema.table`` in a schema present on both sides
    - Missing columns: ``schema.table.column`` in a table present on both sides
    - Mismatched columns: ``schema.table.column (typeA != typeB)`` for
      columns present on both sides with different descriptors

    Args:
        first: Snapshot whose entries are looked up.
        second: Snapshot they are looked up in.

    Returns:
        ``DiffReport``. All empty if either snapshot is empty.

    Examples:
        >>> a = DatabaseSnapshot.from_mapping({"public": {"users": {"id": "integer"}}})
        >>> b = DatabaseSnapshot.from_mapping({"public": {"users": {"id": "bigint"}}})
        >>> diff_snapshots(a, b).mismatched_columns
        ['public.users.id (integer != bigint)']

        >>> diff_snapshots(a, a).is_empty
        True
    """
    if first.is_empty or second.is_empty:
        return DiffReport()

    missing_schemas = _ordered_difference(first.schema_names(), second.schema_names())

    missing_tables: list[str] = []
    missing_columns: list[str] = []
    mismatched_columns: list[str] = []
    for schema_name in _ordered_intersection(first.schema_names(), second.schema_names()):
        schema_report = _diff_tables(
            first.schemas[schema_name], second.schemas[schema_name]
        )
        missing_tables.extend(schema_report.missing_tables)
        missing_columns.extend(schema_report.missing_columns)
        mismatched_columns.extend(schema_report.mismatched_columns)

    return DiffReport(
        missing_schemas=missing_schemas,
        missing_tables=missing_tables,
        missing_columns=missing_columns,
        mismatched_columns=mismatched_columns,
    )


def compare_snapshots(
    master: DatabaseSnapshot,
    slave: DatabaseSnapshot,
) -> ComparisonResult:
    """Compare master and slave snapshots in both directions.

    Returns:
        ``ComparisonResult`` with ``result=1``:

        - ``not_exist_on_master``: ``diff_snapshots(slave, master)``
        - ``not_exist_on_slave``: ``diff_snapshots(master, slave)``
    """
    not_exist_on_master = diff_snapshots(slave, master)
    not_exist_on_slave = diff_snapshots(master, slave)

    logger.debug(
        f"Drift: {not_exist_on_master.drift_count} entries not on master, "
        f"{not_exist_on_slave.drift_count} entries not on slave"
    )

    info = [
        f"Master server DB: {len(master.schemas)} schemas, {master.table_count} tables, "
        f"{master.column_count} columns",
        f"Slave server DB: {len(slave.schemas)} schemas, {slave.table_count} tables, "
        f"{slave.column_count} columns",
    ]
    if not_exist_on_master.is_empty and not_exist_on_slave.is_empty:
        info.append("No structural drift between Master and Slave server DB")
    else:
        info.append(
            f"Structural drift found: {not_exist_on_master.drift_count} not on Master, "
            f"{not_exist_on_slave.drift_count} not on Slave"
        )

    return ComparisonResult(
        result=1,
        data=ComparisonData(
            not_exist_on_master=not_exist_on_master,
            not_exist_on_slave=not_exist_on_slave,
        ),
        messages=ComparisonMessages(info=info),
    )
