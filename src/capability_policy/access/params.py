"""Typed extraction of capability arguments.

Capability handlers receive loosely-typed argument mappings from the
transport. :class:`ParameterReader` validates each argument once, at the
top of the handler, and raises :class:`InvalidParameter` with the expected
and actual kinds instead of failing deep inside the handler body.

Example
-------
::

    params = ParameterReader({"table": "orders", "limit": 10})
    table = params.string("table")
    limit = params.integer("limit", default=100)
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from capability_policy.errors import InvalidParameter

_MISSING = object()


def kind_of(value: object) -> str:
    """Return the JSON-ish kind name of *value*."""
    if value is _MISSING:
        return "missing"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


class ParameterReader:
    """Validated accessors over a capability's raw arguments.

    Parameters
    ----------
    arguments:
        The raw argument mapping supplied by the caller.
    """

    def __init__(self, arguments: Optional[Mapping[str, object]] = None) -> None:
        self._arguments: Mapping[str, object] = dict(arguments or {})

    def _raw(self, name: str) -> object:
        return self._arguments.get(name, _MISSING)

    def has(self, name: str) -> bool:
        return name in self._arguments and self._arguments[name] is not None

    # ------------------------------------------------------------------
    # Strings
    # ------------------------------------------------------------------

    def string(self, name: str) -> str:
        """Return a required, non-empty string argument."""
        value = self._raw(name)
        if not isinstance(value, str):
            raise InvalidParameter(name, "string", kind_of(value))
        if not value.strip():
            raise InvalidParameter(name, "non-empty string", "empty string")
        return value

    def optional_string(self, name: str, default: Optional[str] = None) -> Optional[str]:
        if not self.has(name):
            return default
        value = self._raw(name)
        if not isinstance(value, str):
            raise InvalidParameter(name, "string", kind_of(value))
        return value

    def string_list(self, name: str, required: bool = True) -> list[str]:
        """Return a list of strings; every element is checked."""
        if not self.has(name):
            if required:
                raise InvalidParameter(name, "array of strings", "missing")
            return []
        value = self._raw(name)
        if not isinstance(value, (list, tuple)):
            raise InvalidParameter(name, "array of strings", kind_of(value))
        for item in value:
            if not isinstance(item, str):
                raise InvalidParameter(name, "array of strings", f"array containing {kind_of(item)}")
        return list(value)

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def integer(self, name: str, default: Optional[int] = None) -> int:
        """Return an integer argument; booleans are rejected.

        Whole-valued floats (JSON numbers such as ``10.0``) are accepted.
        """
        if not self.has(name):
            if default is None:
                raise InvalidParameter(name, "integer", "missing")
            return default
        value = self._raw(name)
        if isinstance(value, bool):
            raise InvalidParameter(name, "integer", "boolean")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise InvalidParameter(name, "integer", kind_of(value))

    def boolean(self, name: str, default: Optional[bool] = None) -> bool:
        if not self.has(name):
            if default is None:
                raise InvalidParameter(name, "boolean", "missing")
            return default
        value = self._raw(name)
        if not isinstance(value, bool):
            raise InvalidParameter(name, "boolean", kind_of(value))
        return value


__all__ = ["ParameterReader", "kind_of"]
