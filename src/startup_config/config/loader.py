from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel

from startup_config.config.binder import bind_settings, clear_config_path
from startup_config.config.errors import report_error
from startup_config.config.interfaces import SchemaProvider
from startup_config.config.models import LoadFailure, LoadResult, LoadStage, LoadSuccess, Source
from startup_config.config.sources import (
    get_config_path,
    load_command_variables,
    load_configuration_variables,
    load_environment_variables,
    read_environment,
)
from startup_config.config.variables import VariableMap

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _LoadContext:
    schema: SchemaProvider
    argv: Sequence[str]
    environ: Optional[Mapping[str, str]]
    dotenv_path: Optional[Union[str, os.PathLike]]
    variables: VariableMap = field(default_factory=VariableMap)
    config_path: Optional[Path] = None
    loaded_file: bool = False
    values: Dict[str, Any] = field(default_factory=dict)
    settings: Optional[BaseModel] = None


def _parse_command_line(context: _LoadContext) -> None:
    load_command_variables(context.variables, context.schema, context.argv)


def _resolve_config_path(context: _LoadContext) -> None:
    context.config_path = get_config_path(context.variables, context.schema.config_key)


def _merge_environment(context: _LoadContext) -> None:
    # Must be stored before the file so the environment can name the file.
    environ = read_environment(context.environ, context.dotenv_path)
    load_environment_variables(context.variables, context.schema, environ)


def _attempt_file(context: _LoadContext) -> None:
    context.loaded_file = load_configuration_variables(context.variables, context.schema, context.config_path)


def _merge(context: _LoadContext) -> None:
    context.values = context.variables.values_by_key()
    if logger.isEnabledFor(logging.DEBUG):
        counts = {source.value: 0 for source in Source}
        for variable in context.variables.values():
            if not variable.defaulted:
                counts[variable.source.value] += 1
        logger.debug("config.merged keys=%d explicit=%s", len(context.values), counts)


def _bind(context: _LoadContext) -> None:
    context.settings = bind_settings(context.schema, context.values)


def _post_process(context: _LoadContext) -> None:
    if not context.loaded_file and context.settings is not None:
        context.settings = clear_config_path(context.schema, context.settings)


_STAGES: Tuple[Tuple[LoadStage, Callable[[_LoadContext], None]], ...] = (
    (LoadStage.COMMAND_LINE_PARSED, _parse_command_line),
    (LoadStage.PATH_RESOLVED, _resolve_config_path),
    (LoadStage.ENVIRONMENT_MERGED, _merge_environment),
    (LoadStage.PATH_RESOLVED_AGAIN, _resolve_config_path),
    (LoadStage.FILE_ATTEMPTED, _attempt_file),
    (LoadStage.MERGED, _merge),
    (LoadStage.BOUND, _bind),
    (LoadStage.POST_PROCESSED, _post_process),
)


def _run_stage(
    stage: LoadStage,
    action: Callable[[_LoadContext], None],
    context: _LoadContext,
) -> Optional[LoadFailure]:
    try:
        action(context)
    except Exception as exc:
        report = report_error(exc)
        return LoadFailure(kind=report.kind, message=report.message, stage=stage)
    logger.debug("config.stage_complete stage=%s", stage.value)
    return None


def load_settings(
    schema: SchemaProvider,
    argv: Sequence[str] = (),
    *,
    environ: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[Union[str, os.PathLike]] = None,
) -> LoadResult:
    """
    Resolve settings from the command line, the environment and a config file.

    Precedence is command line > environment > file > defaults. `argv` excludes
    the program name and `environ` defaults to `os.environ`. Failures come back
    as a LoadFailure naming the stage that did not complete.
    """
    context = _LoadContext(schema=schema, argv=argv, environ=environ, dotenv_path=dotenv_path)
    for stage, action in _STAGES:
        failure = _run_stage(stage, action, context)
        if failure is not None:
            return failure

    assert context.settings is not None
    return LoadSuccess(
        settings=context.settings,
        loaded_file=context.loaded_file,
        config_path=context.config_path if context.loaded_file else None,
    )


def load_config(
    schema: SchemaProvider,
    argv: Sequence[str] = (),
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[bool, str, Optional[BaseModel]]:
    """Boolean form of load_settings: (ok, message, settings)."""
    result = load_settings(schema, argv, environ=environ)
    if isinstance(result, LoadFailure):
        return False, result.message, None
    return True, "", result.settings
