from __future__ import annotations

from typing import Optional, Protocol, Sequence, Type

from pydantic import BaseModel

from startup_config.config.models import OptionSpec, PositionalSpec


class SchemaProvider(Protocol):
    """
    Describes which options each source recognises and where they bind.

    The loaders only read from a provider; they never modify it.
    """

    settings_model: Type[BaseModel]
    env_prefix: str
    config_key: str
    program: str
    description: str

    def load_options(self) -> Sequence[OptionSpec]:
        """Command-line options."""

    def load_arguments(self) -> Sequence[PositionalSpec]:
        """Positional argument bindings onto command-line options."""

    def load_environment(self) -> Sequence[OptionSpec]:
        """Options recognised in the environment, keyed after the prefix is stripped."""

    def load_settings(self) -> Sequence[OptionSpec]:
        """Options recognised in the configuration file."""

    def option(self, key: str) -> Optional[OptionSpec]:
        ...
