"""Schema introspection and structural comparison.

Provides live database introspection (``SchemaIntrospector``), snapshot
models (``DatabaseSnapshot``), and the master/slave structural diff
(``diff_snapshots``, ``compare_snapshots``).

Usage:
    from db_schema_diff.schema import SchemaIntrospector, diff_snapshots
    from db_schema_diff.schema import compare_snapshots, DatabaseSnapshot
"""

from db_schema_diff.schema.comparator import compare_snapshots, diff_snapshots
from db_schema_diff.schema.introspector import SchemaIntrospector, normalize_data_type
from db_schema_diff.schema.models import (
    ComparisonData,
    ComparisonMessages,
    ComparisonResult,
    DatabaseSnapshot,
    DiffReport,
    SchemaSnapshot,
    SnapshotResult,
    TableSnapshot,
)

__all__ = [
    "diff_snapshots",
    "compare_snapshots",
    "SchemaIntrospector",
    "normalize_data_type",
    "DatabaseSnapshot",
    "SchemaSnapshot",
    "TableSnapshot",
    "SnapshotResult",
    "DiffReport",
    "ComparisonData",
    "ComparisonMessages",
    "ComparisonResult",
]
