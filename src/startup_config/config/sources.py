from __future__ import annotations

import argparse
import configparser
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, NoReturn, Optional, Sequence, Union

import yaml
from dotenv import dotenv_values

from startup_config.config.coercion import coerce_scalar, coerce_value
from startup_config.config.errors import OptionSyntaxError
from startup_config.config.interfaces import SchemaProvider
from startup_config.config.models import OptionSpec, Source
from startup_config.config.variables import VariableMap

logger = logging.getLogger(__name__)

YAML_SUFFIXES = frozenset({".yaml", ".yml"})
ENV_LIST_SEPARATOR = ","

# configparser needs a header before the first key; top-level keys live here.
_ROOT_SECTION = "\x00root"
_NO_DEFAULT_SECTION = "\x00defaults"


class _OptionParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise OptionSyntaxError(message)


class _StoreOnceAction(argparse.Action):
    def __call__(self, parser, namespace, values, option_string=None):
        if values is None:
            return
        if getattr(namespace, self.dest, None) is not None:
            raise argparse.ArgumentError(self, "option cannot be specified more than once")
        setattr(namespace, self.dest, values)


class _ExtendAction(argparse.Action):
    def __call__(self, parser, namespace, values, option_string=None):
        if values is None or values == []:
            return
        items = list(getattr(namespace, self.dest, None) or [])
        if isinstance(values, list):
            items.extend(values)
        else:
            items.append(values)
        setattr(namespace, self.dest, items)


def _positional_action(option: OptionSpec, max_count: int) -> type:
    base = _ExtendAction if option.multiple else _StoreOnceAction
    if max_count <= 1:
        return base

    class _BoundedAction(base):  # type: ignore[valid-type,misc]
        def __call__(self, parser, namespace, values, option_string=None):
            if isinstance(values, list) and len(values) > max_count:
                raise argparse.ArgumentError(self, f"expected at most {max_count} values")
            super().__call__(parser, namespace, values, option_string)

    return _BoundedAction


def _argument_type(option: OptionSpec, config_key: str) -> Callable[[str], Any]:
    def convert(raw: str) -> Any:
        # A blank config path means "no file"; the store actions skip None.
        if option.key == config_key and not raw.strip():
            return None
        return coerce_scalar(option, raw)

    convert.__name__ = option.value_type.__name__
    return convert


def _metavar(key: str) -> str:
    return key.rsplit(".", 1)[-1].upper()


def _store_defaults(variables: VariableMap, options: Sequence[OptionSpec], source: Source) -> None:
    for option in options:
        if option.has_default:
            value = list(option.default) if option.multiple else option.default
            variables.store_default(option.key, value, source)


def build_command_parser(schema: SchemaProvider) -> argparse.ArgumentParser:
    """Build a strict argparse parser for the schema's command-line options."""
    parser = _OptionParser(
        prog=schema.program,
        description=schema.description or None,
        add_help=False,
        allow_abbrev=False,
        exit_on_error=False,
    )
    options = {option.key: option for option in schema.load_options()}
    for option in options.values():
        if option.value_type is bool:
            parser.add_argument(
                *option.command_line_flags(),
                dest=option.key,
                action="store_true",
                default=argparse.SUPPRESS,
                help=option.help or None,
            )
            continue
        parser.add_argument(
            *option.command_line_flags(),
            dest=option.key,
            action=_ExtendAction if option.multiple else _StoreOnceAction,
            type=_argument_type(option, schema.config_key),
            default=argparse.SUPPRESS,
            metavar=_metavar(option.key),
            help=option.help or None,
        )

    for argument in schema.load_arguments():
        option = options[argument.key]
        parser.add_argument(
            argument.key,
            nargs="?" if argument.max_count == 1 else "*",
            action=_positional_action(option, argument.max_count),
            type=_argument_type(option, schema.config_key),
            default=None,
            metavar=_metavar(option.key),
            help=option.help or None,
        )
    return parser


def load_command_variables(variables: VariableMap, schema: SchemaProvider, argv: Sequence[str]) -> None:
    """Parse command-line arguments (without the program name) into the map."""
    parser = build_command_parser(schema)
    try:
        namespace = parser.parse_args(list(argv))
    except argparse.ArgumentError as exc:
        raise OptionSyntaxError(str(exc)) from exc

    parsed = vars(namespace)
    for option in schema.load_options():
        if parsed.get(option.key) is not None:
            variables.store(option.key, parsed[option.key], Source.COMMAND_LINE)
    _store_defaults(variables, schema.load_options(), Source.COMMAND_LINE)
    logger.debug("config.command_line_loaded count=%d", sum(value is not None for value in parsed.values()))


def get_config_path(variables: VariableMap, config_key: str) -> Optional[Path]:
    """Return the configured file path, or None when nothing has set it."""
    value = variables.value(config_key)
    if value is None:
        return None
    text = str(value)
    if not text.strip():
        return None
    return value if isinstance(value, Path) else Path(text)


def environment_key(name: str, prefix: str) -> Optional[str]:
    """Map `PREFIX_SECTION__NAME` to `section.name`; None when nothing follows the prefix."""
    if not name.startswith(prefix):
        return None
    parts = [part for part in name[len(prefix) :].split("__") if part]
    if not parts:
        return None
    return ".".join(part.lower() for part in parts)


def read_environment(
    environ: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[Union[str, os.PathLike]] = None,
) -> Dict[str, str]:
    """
    Snapshot the process environment.

    Values from a dotenv file sit underneath the real environment, which always
    wins. `os.environ` itself is never modified.
    """
    merged: Dict[str, str] = {}
    if dotenv_path is not None and Path(dotenv_path).exists():
        for name, value in dotenv_values(dotenv_path).items():
            if value is not None:
                merged[name] = value
    merged.update(os.environ if environ is None else environ)
    return merged


def load_environment_variables(
    variables: VariableMap,
    schema: SchemaProvider,
    environ: Mapping[str, str],
) -> None:
    """Layer prefixed environment variables under what the command line set."""
    recognised = {option.key: option for option in schema.load_environment()}
    prefix = schema.env_prefix
    stored = 0
    for name in sorted(environ):
        key = environment_key(name, prefix)
        if key is None:
            continue
        option = recognised.get(key)
        if option is None:
            logger.debug("config.env_ignored name=%s reason=unrecognised", name)
            continue
        if key == schema.config_key and not environ[name].strip():
            logger.debug("config.env_ignored name=%s reason=empty_config_path", name)
            continue
        try:
            value = coerce_value(option, environ[name], separator=ENV_LIST_SEPARATOR)
        except ValueError as exc:
            logger.debug("config.env_ignored name=%s reason=%s", name, exc)
            continue
        if variables.store(key, value, Source.ENVIRONMENT):
            stored += 1
    _store_defaults(variables, schema.load_environment(), Source.ENVIRONMENT)
    logger.debug("config.environment_loaded stored=%d", stored)


def _flatten_mapping(data: Mapping[Any, Any], prefix: str, out: Dict[str, Any]) -> None:
    for raw_key, value in data.items():
        key = f"{prefix}{raw_key}"
        if isinstance(value, Mapping):
            _flatten_mapping(value, f"{key}.", out)
            continue
        out[key] = value


def _parse_yaml(text: str, source: str) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.MarkedYAMLError as exc:
        raise OptionSyntaxError(f"invalid configuration file {source}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise OptionSyntaxError(
            f"invalid configuration file {source}: top-level YAML must be a mapping, got: {type(data).__name__}"
        )
    flat: Dict[str, Any] = {}
    _flatten_mapping(data, "", flat)
    return flat


def _parse_ini(text: str, source: str) -> Dict[str, Any]:
    parser = configparser.ConfigParser(
        interpolation=None,
        strict=True,
        empty_lines_in_values=False,
        inline_comment_prefixes=("#",),
        default_section=_NO_DEFAULT_SECTION,
    )
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    try:
        parser.read_string(f"[{_ROOT_SECTION}]\n{text}", source=source)
    except (
        configparser.ParsingError,
        configparser.DuplicateSectionError,
        configparser.DuplicateOptionError,
    ) as exc:
        raise OptionSyntaxError(str(exc)) from exc

    flat: Dict[str, Any] = {}
    for section in parser.sections():
        for name, value in parser.items(section, raw=True):
            key = name if section == _ROOT_SECTION else f"{section}.{name}"
            flat[key] = value
    return flat


def parse_config_text(
    text: str,
    options: Sequence[OptionSpec],
    *,
    source: str = "<string>",
    yaml_format: bool = False,
) -> Dict[str, Any]:
    """
    Parse configuration file content into typed values keyed by option key.

    Every key must be declared by `options`; values are converted to the
    declared type. Any failure raises OptionSyntaxError.
    """
    raw = _parse_yaml(text, source) if yaml_format else _parse_ini(text, source)
    recognised = {option.key: option for option in options}
    entries: Dict[str, Any] = {}
    for key, raw_value in raw.items():
        option = recognised.get(key)
        if option is None:
            raise OptionSyntaxError(f"unrecognised option '{key}' in configuration file {source}")
        try:
            entries[key] = coerce_value(option, raw_value)
        except ValueError as exc:
            raise OptionSyntaxError(
                f"the argument ('{raw_value}') for option '{key}' in configuration file {source} is invalid: {exc}"
            ) from exc
    return entries


def _read_config_text(path: Path) -> str:
    data = path.read_bytes()
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise OptionSyntaxError(f"configuration file {path} is not valid UTF-8 text") from exc


def load_configuration_variables(
    variables: VariableMap,
    schema: SchemaProvider,
    config_path: Optional[Path],
) -> bool:
    """
    Store the configuration file's values under everything already set.

    Returns True when the file at `config_path` was read. A missing path or an
    unreadable file falls back to parsing empty input, which only contributes
    the file options' defaults.
    """
    options: List[OptionSpec] = list(schema.load_settings())
    text = ""
    source = "<defaults>"
    yaml_format = False
    loaded_file = False

    if config_path is not None:
        try:
            text = _read_config_text(config_path)
        except OSError as exc:
            logger.debug("config.file_unavailable path=%s error=%s", config_path, exc)
        else:
            source = str(config_path)
            yaml_format = config_path.suffix.lower() in YAML_SUFFIXES
            loaded_file = True

    entries = parse_config_text(text, options, source=source, yaml_format=yaml_format)
    for key, value in entries.items():
        variables.store(key, value, Source.FILE)
    _store_defaults(variables, options, Source.FILE)

    if loaded_file:
        logger.debug("config.file_loaded path=%s count=%d", config_path, len(entries))
    return loaded_file
