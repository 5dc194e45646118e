from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional

from startup_config.config.models import Source


@dataclass(frozen=True, slots=True)
class Variable:
    value: Any
    source: Source
    defaulted: bool = False


class VariableMap(Mapping[str, Variable]):
    """
    Option values collected across the loader passes.

    Loaders run from highest to lowest precedence, so a store never replaces an
    explicit value already present. Defaults form the lowest tier: the first
    explicit value replaces a default, and the first default stored for a key
    is the one kept.
    """

    def __init__(self) -> None:
        self._variables: Dict[str, Variable] = {}

    def __getitem__(self, key: str) -> Variable:
        return self._variables[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def __repr__(self) -> str:
        return f"VariableMap({self._variables!r})"

    def store(self, key: str, value: Any, source: Source) -> bool:
        """Store an explicit value. Returns False when a value was already set."""
        existing = self._variables.get(key)
        if existing is not None and not existing.defaulted:
            return False
        self._variables[key] = Variable(value=value, source=source)
        return True

    def store_default(self, key: str, value: Any, source: Source) -> bool:
        """Store a declared default. Returns False when the key already holds any value."""
        if key in self._variables:
            return False
        self._variables[key] = Variable(value=value, source=source, defaulted=True)
        return True

    def value(self, key: str, default: Any = None) -> Any:
        variable = self._variables.get(key)
        if variable is None:
            return default
        return variable.value

    def source_of(self, key: str) -> Optional[Source]:
        variable = self._variables.get(key)
        return None if variable is None else variable.source

    def values_by_key(self) -> Dict[str, Any]:
        return {key: variable.value for key, variable in self._variables.items()}
