"""Path-based updates on JSON trees without full deep copies.

Trees are the plain dict/list/scalar values produced by json.loads. Write
helpers never mutate their input: they return a new root in which only the
containers along the addressed path are shallow-copied, so untouched
subtrees are shared between the old and the new version.

Paths are tuples of dict keys (str) and list indices (int), e.g.
("stateOfficers", 0, "image"). parse_path() builds them from dotted strings.
"""

from typing import Any, Sequence, Tuple, Union

Key = Union[str, int]
Path = Tuple[Key, ...]


def parse_path(dotted: str) -> Path:
    """Turn "stateOfficers.0.image" into ("stateOfficers", 0, "image").

    Numeric segments (including negative ones) become ints; they index
    lists and, inside a dict, address the key with the same digits. An
    empty string addresses the root.

    Raises:
        ValueError: If the string contains empty segments
    """
    if dotted is None or dotted == '':
        return ()

    keys = []
    for segment in dotted.split('.'):
        if segment == '':
            raise ValueError(f"Invalid path '{dotted}': empty segment")
        if segment.lstrip('-').isdigit():
            keys.append(int(segment))
        else:
            keys.append(segment)
    return tuple(keys)


def _dict_key(key: Key) -> Key:
    # JSON object keys are always strings
    return str(key) if isinstance(key, int) and not isinstance(key, bool) else key


def _step(node: Any, key: Key) -> Any:
    if isinstance(node, dict):
        key = _dict_key(key)
        if key not in node:
            raise KeyError(f"key {key!r} not found")
        return node[key]
    if isinstance(node, list):
        if not isinstance(key, int):
            raise TypeError(f"list index must be an integer, got {key!r}")
        if not -len(node) <= key < len(node):
            raise IndexError(f"index {key} out of range (length {len(node)})")
        return node[key]
    raise TypeError(f"cannot index into {type(node).__name__} with {key!r}")


def get_in(tree: Any, path: Sequence[Key]) -> Any:
    """Return the value at path.

    Raises:
        KeyError, IndexError, TypeError: If the path does not resolve
    """
    node = tree
    for key in path:
        node = _step(node, key)
    return node


def _with_child(node: Any, key: Key, value: Any) -> Any:
    """Shallow-copy a container with one child replaced."""
    if isinstance(node, dict):
        copy = dict(node)
        copy[_dict_key(key)] = value
        return copy
    if isinstance(node, list):
        _step(node, key)
        copy = list(node)
        copy[key] = value
        return copy
    raise TypeError(f"cannot set {key!r} on {type(node).__name__}")


def set_in(tree: Any, path: Sequence[Key], value: Any) -> Any:
    """Return a new tree with the value at path replaced.

    Missing dict keys along the way are created as empty dicts. List
    indices must already exist (use append_in to grow a list).
    """
    if not path:
        return value

    key, rest = path[0], path[1:]
    if isinstance(tree, dict):
        key = _dict_key(key)
    if isinstance(tree, dict) and key not in tree and rest:
        child = {}
    elif isinstance(tree, dict) and key not in tree:
        child = None
    else:
        child = _step(tree, key)

    return _with_child(tree, key, set_in(child, rest, value))


def delete_in(tree: Any, path: Sequence[Key]) -> Any:
    """Return a new tree without the dict key or list item at path."""
    if not path:
        raise ValueError("cannot delete the root")

    *parents, last = path
    container = get_in(tree, parents)
    _step(container, last)

    if isinstance(container, dict):
        last = _dict_key(last)
        replacement = {k: v for k, v in container.items() if k != last}
    else:
        index = last if last >= 0 else len(container) + last
        replacement = container[:index] + container[index + 1:]

    return set_in(tree, parents, replacement)


def append_in(tree: Any, path: Sequence[Key], item: Any) -> Any:
    """Return a new tree with item appended to the list at path."""
    target = get_in(tree, path)
    if not isinstance(target, list):
        raise TypeError(f"cannot append to {type(target).__name__}")
    return set_in(tree, path, target + [item])
