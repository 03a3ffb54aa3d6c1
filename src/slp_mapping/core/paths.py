from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Callable, Optional, Sequence


class PathError(Exception):
    """Raised when a nested path cannot be walked or written."""


def _child_mapping(obj: MutableMapping, key: Any, path: Sequence[Any]) -> MutableMapping:
    """
    Return obj[key] as a mapping, creating an empty dict when the slot is vacant.

    An occupied slot that is not a mapping is a conflict; it is never overwritten.
    """
    current = obj.get(key)
    if current is None:
        current = {}
        obj[key] = current
    elif not isinstance(current, MutableMapping):
        raise PathError(
            f"Cannot descend into key {key!r} of path {list(path)!r}: "
            f"found {type(current).__name__}, expected a mapping."
        )
    return current


def update_path(
    obj: MutableMapping,
    path: Sequence[Any],
    update_f: Callable[[Optional[Any]], Any],
) -> MutableMapping:
    """
    Replace the value at `path` with update_f(current value or None).

    Vacant intermediate nodes are created as empty dicts. An empty path leaves
    `obj` untouched. Returns `obj`, so calls can be chained.
    """
    if not path:
        return obj

    node = obj
    for key in path[:-1]:
        node = _child_mapping(node, key, path)

    leaf_key = path[-1]
    node[leaf_key] = update_f(node.get(leaf_key))
    return obj


def set_path(obj: Optional[MutableMapping], path: Sequence[Any], value: Any) -> MutableMapping:
    if not path:
        raise PathError("empty path")
    if obj is None:
        raise PathError("no object")
    return update_path(obj, path, lambda _current: value)


def ensure_path(obj: MutableMapping, path: Sequence[Any]) -> MutableMapping:
    """Return the mapping found at `path`, creating empty dicts along the way."""
    node = obj
    for key in path:
        node = _child_mapping(node, key, path)
    return node
