from __future__ import annotations

from pathlib import Path
from typing import Any, List

from startup_config.config.models import OptionSpec

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


def _coerce_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ValueError(f"expected a boolean, got {raw!r}")


def _coerce_int(raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValueError(f"expected an integer, got {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        return int(raw.strip(), 10)
    raise ValueError(f"expected an integer, got {raw!r}")


def _coerce_float(raw: Any) -> float:
    if isinstance(raw, bool):
        raise ValueError(f"expected a number, got {raw!r}")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        return float(raw.strip())
    raise ValueError(f"expected a number, got {raw!r}")


def _coerce_scalar_text(raw: Any) -> str:
    if isinstance(raw, (dict, list, tuple)) or raw is None:
        raise ValueError(f"expected a scalar value, got {type(raw).__name__}")
    if isinstance(raw, bool):
        return str(raw).lower()
    return str(raw)


def coerce_scalar(option: OptionSpec, raw: Any) -> Any:
    """Convert one raw value to the option's declared type. Raises ValueError."""
    value_type = option.value_type
    if value_type is bool:
        return _coerce_bool(raw)
    if value_type is int:
        return _coerce_int(raw)
    if value_type is float:
        return _coerce_float(raw)
    text = _coerce_scalar_text(raw)
    if value_type is Path:
        if not text.strip():
            raise ValueError("expected a path, got an empty value")
        return Path(text.strip())
    return text


def coerce_value(option: OptionSpec, raw: Any, *, separator: str = "\n") -> Any:
    """
    Convert a raw source value for an option.

    Multiple options accept a list, or a string split on `separator` with empty
    items dropped.
    """
    if not option.multiple:
        return coerce_scalar(option, raw)
    if isinstance(raw, (list, tuple)):
        items: List[Any] = list(raw)
    elif isinstance(raw, str):
        items = [item.strip() for item in raw.split(separator)]
        items = [item for item in items if item]
    else:
        items = [raw]
    return [coerce_scalar(option, item) for item in items]
