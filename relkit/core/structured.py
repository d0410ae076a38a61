"""Typed accessors for parsed TOML and JSON documents.

``release.toml`` and ``package.json`` arrive as untyped objects. These
helpers check shapes at runtime and hand back narrowed types; anything of
the wrong shape reads as None so callers can fall back to a default.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import cast

StrDict = dict[str, object]


def as_str_dict(obj: object) -> StrDict | None:
    """obj as a dict if it is one and every key is a string."""
    if not isinstance(obj, dict):
        return None
    d = cast(dict[object, object], obj)
    if any(not isinstance(k, str) for k in d):
        return None
    return cast(StrDict, d)


def _clean(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Stripped string at key; None when absent, blank or not a string."""
    return _clean(table.get(key))


def get_int(table: Mapping[str, object], key: str) -> int | None:
    value = table.get(key)
    # bool is an int subclass; `exit_code = true` is a mistake, not 1
    if type(value) is int:
        return value
    return None


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    return as_str_dict(table.get(key))


def get_str_list(table: Mapping[str, object], key: str) -> tuple[str, ...] | None:
    """Stripped strings at key; None when absent or when any item is blank or not a string."""
    value = table.get(key)
    if not isinstance(value, list):
        return None
    cleaned = [_clean(item) for item in cast(list[object], value)]
    if any(item is None for item in cleaned):
        return None
    return tuple(item for item in cleaned if item is not None)
