"""
Configuration - layered YAML sources flattened into a read-only store.
"""

from .store import ConfigurationStore, parse_bool
from .interpolation import substitute_variables, default_lookup, chain_lookup
from .reader import (
    YAMLConfigReader,
    read_config,
    DEFAULT_CONFIG_PATHS,
    CONFIG_FILE_VARIABLE,
)

__all__ = [
    "ConfigurationStore",
    "parse_bool",
    "substitute_variables",
    "default_lookup",
    "chain_lookup",
    "YAMLConfigReader",
    "read_config",
    "DEFAULT_CONFIG_PATHS",
    "CONFIG_FILE_VARIABLE",
]
