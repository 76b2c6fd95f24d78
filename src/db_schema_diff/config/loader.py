"""Comparison configuration loading from TOML."""

import tomllib
from pathlib import Path

from db_schema_diff.config.models import DEFAULT_EXCLUDED_SCHEMAS, DiffConfig, ServerOptions


def load_diff_config(config_path: Path | None = None) -> DiffConfig:
    """Load comparison configuration from TOML file.

    Args:
        config_path: Path to db-diff.toml (default: ./db-diff.toml)

    Returns:
        DiffConfig with all server profiles and compare settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / "db-diff.toml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"Comparison config not found: {config_path}\n"
            f"Copy db-diff.toml.example to db-diff.toml and configure your profiles."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {config_path.name}: {e}") from e

    # Parse profiles (incomplete profiles are reported at compare time)
    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = ServerOptions.model_validate(profile_data)

    # Parse compare settings
    compare_settings = data.get("compare", {})

    return DiffConfig(
        profiles=profiles,
        master_profile=compare_settings.get("master"),
        slave_profile=compare_settings.get("slave"),
        excluded_schemas=compare_settings.get(
            "excluded_schemas", list(DEFAULT_EXCLUDED_SCHEMAS)
        ),
        connect_timeout=compare_settings.get("connect_timeout", 10),
    )
