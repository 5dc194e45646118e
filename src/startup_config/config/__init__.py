"""Layered configuration loading: command line, environment, then file."""

from startup_config.config.errors import (
    ConfigError,
    ErrorKind,
    OptionSyntaxError,
    ParsingError,
    SchemaError,
)
from startup_config.config.interfaces import SchemaProvider
from startup_config.config.loader import load_config, load_settings
from startup_config.config.models import (
    MISSING,
    LoadFailure,
    LoadResult,
    LoadStage,
    LoadSuccess,
    OptionSpec,
    PositionalSpec,
    Schema,
    Source,
)

__all__ = [
    "MISSING",
    "ConfigError",
    "ErrorKind",
    "LoadFailure",
    "LoadResult",
    "LoadStage",
    "LoadSuccess",
    "OptionSpec",
    "OptionSyntaxError",
    "ParsingError",
    "PositionalSpec",
    "Schema",
    "SchemaError",
    "SchemaProvider",
    "Source",
    "load_config",
    "load_settings",
]
