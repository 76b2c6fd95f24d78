"""Pydantic models for server options and comparison configuration."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# Catalog schemas that are never part of a structural snapshot
DEFAULT_EXCLUDED_SCHEMAS = ("information_schema", "pg_catalog")


# ============================================================================
# Configuration Models
# ============================================================================


class ServerOptions(BaseModel):
    """Connection options for one server, from db-diff.toml or a plain dict.

    Accepts both the snake_case names and the legacy option keys
    (``ip``, ``dbPort``, ``dbName``, ``dbUser``, ``dbUserPassword``).
    Every field is optional at load time; use ``missing_options()`` to find
    out whether a connection may be attempted.

    Example:
        >>> opts = ServerOptions(ip="127.0.0.1", dbPort=5432, dbName="app",
        ...                      dbUser="postgres", dbUserPassword="")
        >>> opts.port
        '5432'
        >>> opts.missing_options()
        []
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    host: str | None = Field(
        default=None, validation_alias=AliasChoices("host", "ip")
    )
    port: str | None = Field(
        default=None, validation_alias=AliasChoices("port", "dbPort")
    )
    database_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("database_name", "databaseName", "dbName"),
    )
    user: str | None = Field(
        default=None, validation_alias=AliasChoices("user", "dbUser")
    )
    password: str | None = Field(
        default=None, validation_alias=AliasChoices("password", "dbUserPassword")
    )
    description: str = ""

    def missing_options(self) -> list[str]:
        """Names of options that prevent a connection attempt.

        host, port, database_name and user must be non-empty. password must
        be present but may be an empty string.
        """
        missing = [
            name
            for name in ("host", "port", "database_name", "user")
            if not getattr(self, name)
        ]
        if self.password is None:
            missing.append("password")
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.missing_options()


class DiffConfig(BaseModel):
    """Complete comparison configuration from db-diff.toml."""

    profiles: dict[str, ServerOptions] = Field(default_factory=dict)
    master_profile: str | None = None
    slave_profile: str | None = None
    excluded_schemas: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_SCHEMAS)
    )
    connect_timeout: int = 10
