from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel

from startup_config.config.errors import ErrorKind, SchemaError

SUPPORTED_TYPES: Tuple[type, ...] = (str, int, float, bool, Path)


class _MissingType:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _MissingType()


class Source(str, Enum):
    COMMAND_LINE = "command_line"
    ENVIRONMENT = "environment"
    FILE = "file"


class LoadStage(str, Enum):
    START = "start"
    COMMAND_LINE_PARSED = "command_line_parsed"
    PATH_RESOLVED = "path_resolved"
    ENVIRONMENT_MERGED = "environment_merged"
    PATH_RESOLVED_AGAIN = "path_resolved_again"
    FILE_ATTEMPTED = "file_attempted"
    MERGED = "merged"
    BOUND = "bound"
    POST_PROCESSED = "post_processed"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class OptionSpec:
    """
    One recognised option.

    `key` is the logical, dotted name shared by every source (`network.threads`).
    `field` is the dotted path on the settings model and defaults to the key.
    Command-line spellings are derived from the key when `flags` is empty.
    """

    key: str
    value_type: type = str
    default: Any = MISSING
    multiple: bool = False
    help: str = ""
    flags: Tuple[str, ...] = ()
    field: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.key or any(not part for part in self.key.split(".")):
            raise SchemaError(f"Invalid option key: {self.key!r}")
        if self.value_type not in SUPPORTED_TYPES:
            raise SchemaError(
                f"Unsupported type for option '{self.key}': {getattr(self.value_type, '__name__', self.value_type)}"
            )
        if self.value_type is bool and self.multiple:
            raise SchemaError(f"Switch option '{self.key}' cannot be multiple.")

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def field_path(self) -> Tuple[str, ...]:
        return tuple((self.field or self.key).split("."))

    def command_line_flags(self) -> Tuple[str, ...]:
        if self.flags:
            return self.flags
        return ("--" + self.key.replace(".", "-").replace("_", "-"),)


@dataclass(frozen=True, slots=True)
class PositionalSpec:
    """Binds bare command-line arguments to a declared option; `max_count=-1` is unbounded."""

    key: str
    max_count: int = 1

    def __post_init__(self) -> None:
        if self.max_count == 0 or self.max_count < -1:
            raise SchemaError(f"Invalid positional count for '{self.key}': {self.max_count}")


def _index_options(section: str, options: Sequence[OptionSpec]) -> Dict[str, OptionSpec]:
    indexed: Dict[str, OptionSpec] = {}
    for option in options:
        if option.key in indexed:
            raise SchemaError(f"Duplicate {section} option: {option.key}")
        indexed[option.key] = option
    return indexed


@dataclass(frozen=True, slots=True)
class Schema:
    """
    Immutable description of every option the loaders recognise.

    A key declared by more than one source must agree on type and
    multiplicity; the precedence rules then decide which value survives.
    """

    settings_model: Type[BaseModel]
    options: Tuple[OptionSpec, ...] = ()
    arguments: Tuple[PositionalSpec, ...] = ()
    environment: Tuple[OptionSpec, ...] = ()
    settings: Tuple[OptionSpec, ...] = ()
    env_prefix: str = ""
    config_key: str = "config"
    program: str = "startup-config"
    description: str = ""
    _by_key: Dict[str, OptionSpec] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for name in ("options", "arguments", "environment", "settings"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

        sections = {
            "command-line": _index_options("command-line", self.options),
            "environment": _index_options("environment", self.environment),
            "file": _index_options("file", self.settings),
        }

        by_key: Dict[str, OptionSpec] = {}
        for section, indexed in sections.items():
            for key, option in indexed.items():
                known = by_key.get(key)
                if known is None:
                    by_key[key] = option
                    continue
                if (known.value_type, known.multiple) != (option.value_type, option.multiple):
                    raise SchemaError(
                        f"Option '{key}' is declared with conflicting types across sources "
                        f"({section} declares {option.value_type.__name__}"
                        f"{'[]' if option.multiple else ''}, "
                        f"expected {known.value_type.__name__}{'[]' if known.multiple else ''})."
                    )
                if known.field_path != option.field_path:
                    raise SchemaError(f"Option '{key}' binds to different settings fields across sources.")

        for argument in self.arguments:
            option = sections["command-line"].get(argument.key)
            if option is None:
                raise SchemaError(f"Positional argument binds to undeclared option: {argument.key}")
            if option.value_type is bool:
                raise SchemaError(f"Positional argument cannot bind to switch option: {argument.key}")
            if argument.max_count != 1 and not option.multiple:
                raise SchemaError(f"Positional argument '{argument.key}' takes many values but the option is single.")

        config_option = by_key.get(self.config_key)
        if config_option is not None and (config_option.multiple or config_option.value_type not in (str, Path)):
            raise SchemaError(f"Config path option '{self.config_key}' must be a single path.")
        if self.config_key in sections["file"]:
            raise SchemaError(f"Config path option '{self.config_key}' cannot be read from the file itself.")

        object.__setattr__(self, "_by_key", by_key)

    def load_options(self) -> Tuple[OptionSpec, ...]:
        return self.options

    def load_arguments(self) -> Tuple[PositionalSpec, ...]:
        return self.arguments

    def load_environment(self) -> Tuple[OptionSpec, ...]:
        return self.environment

    def load_settings(self) -> Tuple[OptionSpec, ...]:
        return self.settings

    def option(self, key: str) -> Optional[OptionSpec]:
        return self._by_key.get(key)


@dataclass(frozen=True, slots=True)
class LoadSuccess:
    settings: BaseModel
    loaded_file: bool
    config_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class LoadFailure:
    kind: ErrorKind
    message: str
    stage: LoadStage

    @property
    def ok(self) -> bool:
        return False


LoadResult = Union[LoadSuccess, LoadFailure]
