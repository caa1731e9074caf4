"""
Rule configuration table.

Values arrive from the configuration store as whatever the row held:
booleans, numbers, JSON-encoded strings, or plain strings. Detectors read
their own keys through the typed accessors and supply their own defaults.
"""

import json
from collections.abc import Iterator, Mapping
from typing import Any, Optional

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def _decode(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


class RuleConfig(Mapping):
    """Immutable key -> value view over the enabled rule configuration."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values = {k: _decode(v) for k, v in (values or {}).items()}

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RuleConfig):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"RuleConfig({self._values!r})"

    def flag(self, key: str, default: bool = False) -> bool:
        """Interpret a toggle. Missing keys return ``default``."""
        value = self._values.get(key)
        if value is None:
            return default
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            return default
        return bool(value)

    def number(self, key: str, default: float) -> float:
        """Numeric threshold; falsy or unparsable values fall back to ``default``."""
        value = self._values.get(key)
        if value is None or isinstance(value, bool):
            return default
        try:
            parsed = float(value)
        except (TypeError, ValueError):
            return default
        return parsed if parsed else default

    def integer(self, key: str, default: int) -> int:
        return int(self.number(key, default))

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)
