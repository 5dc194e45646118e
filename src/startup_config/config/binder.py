from __future__ import annotations

from typing import Any, Dict, Mapping, MutableMapping, Sequence

from pydantic import BaseModel

from startup_config.config.errors import SchemaError
from startup_config.config.interfaces import SchemaProvider


def _assign(target: MutableMapping[str, Any], path: Sequence[str], value: Any) -> None:
    cur: MutableMapping[str, Any] = target
    for segment in path[:-1]:
        next_value = cur.setdefault(segment, {})
        if not isinstance(next_value, dict):
            dotted = ".".join(path)
            raise SchemaError(f"Settings field path does not point to a section: {dotted}")
        cur = next_value
    cur[path[-1]] = value


def build_settings_data(schema: SchemaProvider, values: Mapping[str, Any]) -> Dict[str, Any]:
    """Arrange resolved option values into the nested shape of the settings model."""
    data: Dict[str, Any] = {}
    for key, value in values.items():
        option = schema.option(key)
        if option is None:
            raise SchemaError(f"Resolved value for undeclared option: {key}")
        _assign(data, option.field_path, value)
    return data


def bind_settings(schema: SchemaProvider, values: Mapping[str, Any]) -> BaseModel:
    """Validate the resolved values into a new settings object."""
    return schema.settings_model.model_validate(build_settings_data(schema, values))


def _replace_field(model: BaseModel, path: Sequence[str], value: Any) -> BaseModel:
    head, rest = path[0], path[1:]
    if head not in type(model).model_fields:
        return model
    if not rest:
        return model.model_copy(update={head: value})
    child = getattr(model, head)
    if not isinstance(child, BaseModel):
        return model
    return model.model_copy(update={head: _replace_field(child, rest, value)})


def clear_config_path(schema: SchemaProvider, settings: BaseModel) -> BaseModel:
    """Return `settings` with its recorded config path set to None."""
    option = schema.option(schema.config_key)
    path = option.field_path if option is not None else (schema.config_key,)
    return _replace_field(settings, path, None)
