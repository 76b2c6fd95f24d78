"""Tests for the comparison config models and TOML loader.

Verifies that load_diff_config() parses profiles and the [compare] table,
that ServerOptions accepts both option key styles, and that incomplete
profiles load without error but report what is missing.
"""

import textwrap
from pathlib import Path

import pytest

from db_schema_diff.config import DEFAULT_EXCLUDED_SCHEMAS, load_diff_config
from db_schema_diff.config.models import DiffConfig, ServerOptions


class TestServerOptions:
    """Test ServerOptions parsing and completeness checks."""

    def test_snake_case_keys(self) -> None:
        """snake_case option names populate the fields."""
        opts = ServerOptions(
            host="localhost",
            port="5432",
            database_name="app",
            user="postgres",
            password="secret",
        )

        assert opts.host == "localhost"
        assert opts.database_name == "app"
        assert opts.missing_options() == []
        assert opts.is_complete is True

    def test_legacy_keys(self) -> None:
        """Legacy ip/dbPort/dbName/dbUser/dbUserPassword keys are accepted."""
        opts = ServerOptions.model_validate(
            {
                "ip": "127.0.0.1",
                "dbPort": "5432",
                "dbName": "postgres",
                "dbUser": "postgres",
                "dbUserPassword": "",
            }
        )

        assert opts.host == "127.0.0.1"
        assert opts.port == "5432"
        assert opts.database_name == "postgres"
        assert opts.user == "postgres"
        assert opts.password == ""

    def test_database_name_camel_case(self) -> None:
        """databaseName is accepted for the database name."""
        opts = ServerOptions.model_validate({"databaseName": "app"})
        assert opts.database_name == "app"

    def test_integer_port_coerced_to_string(self) -> None:
        """TOML integer ports become strings."""
        opts = ServerOptions.model_validate({"port": 5432})
        assert opts.port == "5432"

    def test_empty_password_is_complete(self) -> None:
        """An empty password still allows a connection attempt."""
        opts = ServerOptions(
            host="h", port="1", database_name="d", user="u", password=""
        )
        assert opts.missing_options() == []

    def test_absent_password_is_missing(self) -> None:
        """A password key that is absent blocks the connection attempt."""
        opts = ServerOptions(host="h", port="1", database_name="d", user="u")
        assert opts.missing_options() == ["password"]
        assert opts.is_complete is False

    def test_empty_required_options_are_missing(self) -> None:
        """Empty host/port/database_name/user are reported in field order."""
        opts = ServerOptions(host="", port="5432", database_name="", user="u", password="x")
        assert opts.missing_options() == ["host", "database_name"]

    def test_nothing_given(self) -> None:
        """Bare ServerOptions reports every option."""
        assert ServerOptions().missing_options() == [
            "host",
            "port",
            "database_name",
            "user",
            "password",
        ]


class TestLoadDiffConfig:
    """Test load_diff_config() TOML parsing functionality."""

    def test_load_valid_toml(self, tmp_path: Path) -> None:
        """load_diff_config() parses profiles and compare settings."""
        toml_content = textwrap.dedent("""\
            [profiles.prod]
            host = "10.0.0.1"
            port = 5432
            database_name = "app"
            user = "postgres"
            password = "secret"
            description = "Primary"

            [profiles.replica]
            ip = "10.0.0.2"
            dbPort = "5433"
            dbName = "app"
            dbUser = "reader"
            dbUserPassword = ""

            [compare]
            master = "prod"
            slave = "replica"
            excluded_schemas = ["information_schema", "pg_catalog", "audit"]
            connect_timeout = 3
        """)
        config_file = tmp_path / "db-diff.toml"
        config_file.write_text(toml_content)

        config = load_diff_config(config_path=config_file)

        assert isinstance(config, DiffConfig)
        assert set(config.profiles) == {"prod", "replica"}

        prod = config.profiles["prod"]
        assert prod.host == "10.0.0.1"
        assert prod.port == "5432"
        assert prod.description == "Primary"

        replica = config.profiles["replica"]
        assert replica.host == "10.0.0.2"
        assert replica.port == "5433"
        assert replica.user == "reader"
        assert replica.password == ""

        assert config.master_profile == "prod"
        assert config.slave_profile == "replica"
        assert config.excluded_schemas == ["information_schema", "pg_catalog", "audit"]
        assert config.connect_timeout == 3

    def test_load_minimal_toml(self, tmp_path: Path) -> None:
        """Missing [compare] table falls back to defaults."""
        toml_content = textwrap.dedent("""\
            [profiles.local]
            host = "localhost"
        """)
        config_file = tmp_path / "db-diff.toml"
        config_file.write_text(toml_content)

        config = load_diff_config(config_path=config_file)

        assert len(config.profiles) == 1
        assert config.master_profile is None
        assert config.slave_profile is None
        assert config.excluded_schemas == list(DEFAULT_EXCLUDED_SCHEMAS)
        assert config.connect_timeout == 10

    def test_incomplete_profile_loads(self, tmp_path: Path) -> None:
        """Incomplete profiles are not a load error."""
        toml_content = textwrap.dedent("""\
            [profiles.partial]
            host = "localhost"
            user = "postgres"
        """)
        config_file = tmp_path / "db-diff.toml"
        config_file.write_text(toml_content)

        config = load_diff_config(config_path=config_file)

        assert config.profiles["partial"].missing_options() == [
            "port",
            "database_name",
            "password",
        ]

    def test_file_not_found_raises(self) -> None:
        """load_diff_config() raises FileNotFoundError for missing file."""
        missing_path = Path("/nonexistent/path/db-diff.toml")
        with pytest.raises(FileNotFoundError, match="Comparison config not found"):
            load_diff_config(config_path=missing_path)

    def test_invalid_toml_raises_value_error(self, tmp_path: Path) -> None:
        """Malformed TOML is reported as ValueError."""
        config_file = tmp_path / "db-diff.toml"
        config_file.write_text("[profiles.prod\nhost = ")

        with pytest.raises(ValueError, match="Invalid TOML"):
            load_diff_config(config_path=config_file)

    def test_default_path_reads_from_cwd(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """When no config_path given, load_diff_config() reads ./db-diff.toml."""
        (tmp_path / "db-diff.toml").write_text('[profiles.test]\nhost = "db"\n')
        monkeypatch.chdir(tmp_path)

        config = load_diff_config()

        assert config.profiles["test"].host == "db"

    def test_default_path_missing_raises_from_cwd(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """When cwd has no db-diff.toml, raises FileNotFoundError."""
        monkeypatch.chdir(tmp_path)

        with pytest.raises(FileNotFoundError):
            load_diff_config()
