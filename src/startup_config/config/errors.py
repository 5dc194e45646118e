from __future__ import annotations

import argparse
import configparser
from dataclasses import dataclass
from enum import Enum

import yaml
from pydantic import ValidationError

GENERIC_PARSING_MESSAGE = "configuration parsing error"
UNKNOWN_ERROR_MESSAGE = "unknown error"


class ConfigError(RuntimeError):
    """Base configuration error."""


class ParsingError(ConfigError):
    """Raised by the parsing layer when it cannot say more than that parsing failed."""


class OptionSyntaxError(ParsingError):
    """Raised when command-line or file content is rejected by the parser."""


class SchemaError(ConfigError):
    """Raised when option declarations are invalid or conflicting."""


class ErrorKind(str, Enum):
    OPTION_SYNTAX = "option_syntax"
    GENERIC_PARSING = "generic_parsing"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True, slots=True)
class ErrorReport:
    kind: ErrorKind
    message: str


_SYNTAX_ERRORS = (
    OptionSyntaxError,
    argparse.ArgumentError,
    configparser.ParsingError,
    configparser.DuplicateSectionError,
    configparser.DuplicateOptionError,
    yaml.MarkedYAMLError,
    ValidationError,
)

_PARSING_ERRORS = (
    ParsingError,
    configparser.Error,
    yaml.YAMLError,
)


def report_error(exc: BaseException) -> ErrorReport:
    """
    Classify a failure raised by any load stage.

    Syntax errors keep the parser's own text. Other failures recognised as
    coming from the parsing machinery collapse to a fixed message. Anything
    else is described by its own text when it has one.
    """
    if isinstance(exc, _SYNTAX_ERRORS):
        message = str(exc).strip()
        return ErrorReport(ErrorKind.OPTION_SYNTAX, message or GENERIC_PARSING_MESSAGE)
    if isinstance(exc, _PARSING_ERRORS):
        return ErrorReport(ErrorKind.GENERIC_PARSING, GENERIC_PARSING_MESSAGE)
    message = str(exc).strip()
    return ErrorReport(ErrorKind.UNCLASSIFIED, message or UNKNOWN_ERROR_MESSAGE)
