"""Pydantic models for schema snapshots and structural diff results.

This module contains schema-domain models:
- Snapshot models: TableSnapshot, SchemaSnapshot, DatabaseSnapshot
- Extraction result: SnapshotResult
- Diff models: DiffReport, ComparisonData, ComparisonMessages, ComparisonResult

Configuration models (ServerOptions, DiffConfig) live in
db_schema_diff.config.models.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# Snapshot Models
# ============================================================================


def _read_only(value: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value))


def _check_keys_match_names(kind: str, children: Mapping[str, Any]) -> None:
    for key, child in children.items():
        if key != child.name:
            raise ValueError(f"{kind} key '{key}' does not match {kind} name '{child.name}'")


class TableSnapshot(BaseModel):
    """Columns of one table mapped to their data-type descriptors.

    ``columns`` is a read-only mapping.

    Example:
        >>> table = TableSnapshot(name="users", columns={"id": "integer"})
        >>> table.data_type("id")
        'integer'
    """

    model_config = ConfigDict(frozen=True)

    name: str
    columns: Mapping[str, str] = Field(default_factory=dict, validate_default=True)

    @field_validator("columns", mode="after")
    @classmethod
    def _freeze_columns(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return _read_only(value)

    def column_names(self) -> list[str]:
        return list(self.columns)

    def data_type(self, column_name: str) -> str | None:
        return self.columns.get(column_name)


class SchemaSnapshot(BaseModel):
    """Tables of one database schema, keyed by table name."""

    model_config = ConfigDict(frozen=True)

    name: str
    tables: Mapping[str, TableSnapshot] = Field(default_factory=dict, validate_default=True)

    @field_validator("tables", mode="after")
    @classmethod
    def _freeze_tables(cls, value: Mapping[str, TableSnapshot]) -> Mapping[str, TableSnapshot]:
        return _read_only(value)

    @model_validator(mode="after")
    def _check_table_names(self) -> "SchemaSnapshot":
        _check_keys_match_names("table", self.tables)
        return self

    def table_names(self) -> list[str]:
        return list(self.tables)

    def get_table(self, table_name: str) -> TableSnapshot | None:
        return self.tables.get(table_name)


class DatabaseSnapshot(BaseModel):
    """Point-in-time structure of one database: schema -> table -> column -> type.

    Built once from a catalog query and never refreshed. Every level is a
    read-only mapping whose keys equal the children's names.

    Example:
        >>> snapshot = DatabaseSnapshot.from_rows([
        ...     ("public", "users", "id", "integer"),
        ...     ("public", "users", "name", "varchar(50)"),
        ... ])
        >>> snapshot.schema_names()
        ['public']
        >>> snapshot.get_schema("public").get_table("users").column_names()
        ['id', 'name']
    """

    model_config = ConfigDict(frozen=True)

    schemas: Mapping[str, SchemaSnapshot] = Field(default_factory=dict, validate_default=True)

    @field_validator("schemas", mode="after")
    @classmethod
    def _freeze_schemas(cls, value: Mapping[str, SchemaSnapshot]) -> Mapping[str, SchemaSnapshot]:
        return _read_only(value)

    @model_validator(mode="after")
    def _check_schema_names(self) -> "DatabaseSnapshot":
        _check_keys_match_names("schema", self.schemas)
        return self

    @classmethod
    def from_rows(
        cls, rows: Iterable[tuple[str, str, str | None, str | None]]
    ) -> "DatabaseSnapshot":
        """Build a snapshot from ``(schema, table, column, data_type)`` rows.

        A row whose column is ``None`` registers a table without columns.
        """
        nested: dict[str, dict[str, dict[str, str]]] = {}
        for schema_name, table_name, column_name, data_type in rows:
            columns = nested.setdefault(schema_name, {}).setdefault(table_name, {})
            if column_name is not None:
                columns[column_name] = data_type or ""
        return cls.from_mapping(nested)

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[str, Mapping[str, Mapping[str, str]]]
    ) -> "DatabaseSnapshot":
        """Build a snapshot from a plain nested mapping."""
        return cls(
            schemas={
                schema_name: SchemaSnapshot(
                    name=schema_name,
                    tables={
                        table_name: TableSnapshot(name=table_name, columns=dict(columns))
                        for table_name, columns in tables.items()
                    },
                )
                for schema_name, tables in mapping.items()
            }
        )

    def to_mapping(self) -> dict[str, dict[str, dict[str, str]]]:
        """Plain nested dict form (used for JSON output)."""
        return {
            schema.name: {
                table.name: dict(table.columns) for table in schema.tables.values()
            }
            for schema in self.schemas.values()
        }

    def schema_names(self) -> list[str]:
        return list(self.schemas)

    def get_schema(self, schema_name: str) -> SchemaSnapshot | None:
        return self.schemas.get(schema_name)

    @property
    def is_empty(self) -> bool:
        return not self.schemas

    @property
    def table_count(self) -> int:
        return sum(len(schema.tables) for schema in self.schemas.values())

    @property
    def column_count(self) -> int:
        return sum(
            len(table.columns)
            for schema in self.schemas.values()
            for table in schema.tables.values()
        )


class SnapshotResult(BaseModel):
    """Result of SchemaIntrospector.extract().

    ``success=True`` with an empty snapshot means the database has no user
    tables; ``success=False`` means the snapshot could not be read.

    Example:
        >>> result = SnapshotResult(success=False, error="not connected")
        >>> result.snapshot.is_empty
        True
    """

    success: bool
    snapshot: DatabaseSnapshot = Field(default_factory=DatabaseSnapshot)
    error: str | None = None


# ============================================================================
# Diff Result Models
# ============================================================================


class DiffReport(BaseModel):
    """Entries of a first snapshot that are absent from (or differ in) a second.

    Serialized with the report keys ``schemas``, ``tables``, ``columns`` and
    ``columnsWithDiffDataType`` when dumped ``by_alias``.

    Example:
        >>> report = DiffReport()
        >>> report.is_empty
        True
        >>> report.format_report()
        'No structural drift'
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    missing_schemas: list[str] = Field(default_factory=list, alias="schemas")
    missing_tables: list[str] = Field(default_factory=list, alias="tables")
    missing_columns: list[str] = Field(default_factory=list, alias="columns")
    mismatched_columns: list[str] = Field(
        default_factory=list, alias="columnsWithDiffDataType"
    )

    @property
    def drift_count(self) -> int:
        """Total number of discrepancies at every level."""
        return (
            len(self.missing_schemas)
            + len(self.missing_tables)
            + len(self.missing_columns)
            + len(self.mismatched_columns)
        )

    @property
    def is_empty(self) -> bool:
        return self.drift_count == 0

    def format_report(self) -> str:
        """Format diff report as human-readable text."""
        if self.is_empty:
            return "No structural drift"

        lines = [f"Structural drift ({self.drift_count}):"]

        sections = [
            ("Missing schemas", self.missing_schemas),
            ("Missing tables", self.missing_tables),
            ("Missing columns", self.missing_columns),
            ("Columns with different data type", self.mismatched_columns),
        ]
        for title, entries in sections:
            if entries:
                lines.append(f"\n  {title} ({len(entries)}):")
                for entry in entries:
                    lines.append(f"    - {entry}")

        return "\n".join(lines)


class ComparisonData(BaseModel):
    """Both directions of a master/slave comparison."""

    model_config = ConfigDict(populate_by_name=True)

    # diff(slave, master)
    not_exist_on_master: DiffReport | None = Field(
        default=None, alias="notExistOnMasterServerDB"
    )
    # diff(master, slave)
    not_exist_on_slave: DiffReport | None = Field(
        default=None, alias="notExistOnSlaveServerDB"
    )


class ComparisonMessages(BaseModel):
    info: list[str] = Field(default_factory=list)
    error: list[str] = Field(default_factory=list)


class ComparisonResult(BaseModel):
    """Result of a master/slave structural comparison.

    ``result=1`` means the diff was computed (possibly with no drift);
    ``result=0`` means it was not, with the reason in ``messages.error``.

    Example:
        >>> failed = ComparisonResult.failure("Failed to connect to Master server DB")
        >>> failed.to_dict()
        {'result': 0, 'data': {}, 'messages': {'info': [], 'error': ['Failed to connect to Master server DB']}}
    """

    result: Literal[0, 1] = 0
    data: ComparisonData = Field(default_factory=ComparisonData)
    messages: ComparisonMessages = Field(default_factory=ComparisonMessages)

    @classmethod
    def failure(cls, error: str) -> "ComparisonResult":
        return cls(result=0, messages=ComparisonMessages(error=[error]))

    @property
    def success(self) -> bool:
        return self.result == 1

    @property
    def has_drift(self) -> bool:
        """True if either direction reports any discrepancy."""
        return any(
            report is not None and not report.is_empty
            for report in (self.data.not_exist_on_master, self.data.not_exist_on_slave)
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self, indent: int | None = None) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
