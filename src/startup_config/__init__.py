"""Resolve startup settings from the command line, the environment and a config file."""

from startup_config.config import (
    LoadFailure,
    LoadResult,
    LoadSuccess,
    OptionSpec,
    PositionalSpec,
    Schema,
    load_config,
    load_settings,
)

__version__ = "0.1.0"

__all__ = [
    "LoadFailure",
    "LoadResult",
    "LoadSuccess",
    "OptionSpec",
    "PositionalSpec",
    "Schema",
    "__version__",
    "load_config",
    "load_settings",
]
