"""db-schema-diff: Structural drift detection between two PostgreSQL databases.

Extracts a schema -> table -> column -> data type snapshot from a master and
a slave server and reports what exists on one but not the other, plus
columns whose declared type differs.

Usage:
    from db_schema_diff import compare_databases, compare_profiles
    from db_schema_diff import SchemaIntrospector, diff_snapshots, DatabaseSnapshot
    from db_schema_diff import load_diff_config, ServerOptions
"""

__version__ = "0.1.0"

# Config
from db_schema_diff.config.loader import load_diff_config
from db_schema_diff.config.models import DiffConfig, ServerOptions

# Factory
from db_schema_diff.factory import (
    ProfileNotFoundError,
    compare_databases,
    compare_profiles,
    resolve_conninfo,
    snapshot_profile,
)

# Schema
from db_schema_diff.schema.comparator import compare_snapshots, diff_snapshots
from db_schema_diff.schema.introspector import SchemaIntrospector
from db_schema_diff.schema.models import (
    ComparisonResult,
    DatabaseSnapshot,
    DiffReport,
    SnapshotResult,
)

__all__ = [
    # Config
    "load_diff_config",
    "DiffConfig",
    "ServerOptions",
    # Factory
    "compare_databases",
    "compare_profiles",
    "snapshot_profile",
    "resolve_conninfo",
    "ProfileNotFoundError",
    # Schema
    "SchemaIntrospector",
    "diff_snapshots",
    "compare_snapshots",
    "DatabaseSnapshot",
    "SnapshotResult",
    "DiffReport",
    "ComparisonResult",
]
