"""Configuration management: server profiles, TOML loading, and config models.

Usage:
    >>> from db_schema_diff.config import load_diff_config, ServerOptions, DiffConfig
"""

from db_schema_diff.config.loader import load_diff_config
from db_schema_diff.config.models import DEFAULT_EXCLUDED_SCHEMAS, DiffConfig, ServerOptions

__all__ = ["load_diff_config", "DiffConfig", "ServerOptions", "DEFAULT_EXCLUDED_SCHEMAS"]
