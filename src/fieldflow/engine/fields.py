# src/fieldflow/engine/fields.py
"""Field resolution: edge handles to field definitions, fields to values.

Also the path helpers shared by the replay runtime: writing a value at a
nested path and locating the array an element field belongs to.
"""

import re
from typing import Any

from fieldflow.contracts.enums import FieldType
from fieldflow.contracts.graph import SchemaField, SchemaNode, iter_fields
from fieldflow.contracts.sentinels import MISSING

# "items[0]" -> ("items", "0"); "[2]" -> ("", "2")
_INDEXED_SEGMENT = re.compile(r"^([^\[\]]*)((?:\[\d+\])+)$")
_INDEX = re.compile(r"\[(\d+)\]")


def resolve_field(node: SchemaNode, handle: str | None) -> SchemaField | None:
    """Find the field an edge handle refers to.

    Handles written by people or generated from field names do not always
    carry the exact field id, so matching falls through four strategies and
    returns the first hit:

    1. exact id
    2. exact name
    3. case-insensitive name
    4. id containing the handle, case-insensitive

    Args:
        node: Source or Target node
        handle: Edge sourceHandle/targetHandle

    Returns:
        The matching field, or None; callers skip the edge on None.
    """
    if not handle:
        return None
    fields = list(iter_fields(node.data.fields))

    for candidate in fields:
        if candidate.id == handle:
            return candidate
    for candidate in fields:
        if candidate.name == handle:
            return candidate
    folded = handle.casefold()
    for candidate in fields:
        if candidate.name.casefold() == folded:
            return candidate
    for candidate in fields:
        if folded in candidate.id.casefold():
            return candidate
    return None


def get_path(data: Any, path: str, default: Any = MISSING) -> Any:
    """Get a value from nested dicts/lists using dot notation with [n] indices.

    A key that literally equals the whole path wins over traversal, so flat
    records with dotted column names still resolve.

    Examples:
        >>> get_path({"user": {"tags": ["a", "b"]}}, "user.tags[1]")
        'b'
        >>> get_path({"a.b": 1}, "a.b")
        1
        >>> get_path({}, "missing") is MISSING
        True
    """
    if isinstance(data, dict) and path in data:
        return data[path]

    current: Any = data
    for segment in path.split("."):
        indexed = _INDEXED_SEGMENT.match(segment)
        key, indices = (indexed.group(1), _INDEX.findall(indexed.group(2))) if indexed else (segment, [])
        if key:
            if not isinstance(current, dict) or key not in current:
                return default
            current = current[key]
        for raw_index in indices:
            position = int(raw_index)
            if not isinstance(current, list) or position >= len(current):
                return default
            current = current[position]
    return current


def value_of(node: SchemaNode, field: SchemaField) -> Any:
    """Sample value of a field.

    Reads the first record when the node has records, otherwise the field's
    example value. Returns MISSING when neither has a value.
    """
    if node.data.records:
        return get_path(node.data.records[0], field.value_path)
    if field.example_value is None:
        return MISSING
    return field.example_value


def _path_steps(path: str) -> list[str | int]:
    steps: list[str | int] = []
    for segment in path.split("."):
        indexed = _INDEXED_SEGMENT.match(segment)
        key, indices = (indexed.group(1), _INDEX.findall(indexed.group(2))) if indexed else (segment, [])
        if key:
            steps.append(key)
        steps.extend(int(raw_index) for raw_index in indices)
    return steps


def set_path(data: dict[str, Any], path: str, value: Any) -> None:
    """Write a value at a dotted path with [n] indices, creating containers.

    The write-side counterpart of get_path(). Missing dicts are created for
    keys and lists are padded with None up to an index; anything else in the
    way is replaced.

    Examples:
        >>> record = {}
        >>> set_path(record, "order.lines[1].sku", "A-1")
        >>> record
        {'order': {'lines': [None, {'sku': 'A-1'}]}}
    """
    steps = _path_steps(path)
    if not steps:
        return
    current: Any = data
    for position, step in enumerate(steps):
        if isinstance(step, int) and not isinstance(current, list):
            # An index directly on a dict is kept as a plain key
            step = str(step)
        if isinstance(step, int):
            current.extend([None] * (step + 1 - len(current)))
        if position == len(steps) - 1:
            current[step] = value
            return
        wanted: type = list if isinstance(steps[position + 1], int) else dict
        child = current[step] if isinstance(step, int) else current.get(step)
        if not isinstance(child, wanted):
            child = wanted()
            current[step] = child
        current = child


# "[]" or "[n]" marker, then the dot, between an array path and an element field
_ELEMENT_PREFIX = re.compile(r"^(?:\[\d*\])?\.")


def relative_path(path: str, array_path: str) -> str:
    """Path of an array element field relative to one element.

    Examples:
        >>> relative_path("lines[].sku", "lines")
        'sku'
        >>> relative_path("lines.sku", "lines")
        'sku'
        >>> relative_path("customer", "lines")
        'customer'
    """
    rest = path.removeprefix(array_path)
    if rest == path or not rest.startswith((".", "[")):
        return path
    relative = _ELEMENT_PREFIX.sub("", rest, count=1)
    return relative if relative and relative != rest else path


def enclosing_array(node: SchemaNode, field: SchemaField) -> SchemaField | None:
    """Nearest ancestor of `field` declared as an array, if any."""
    stack: list[tuple[SchemaField, SchemaField | None]] = [(child, None) for child in reversed(node.data.fields)]
    while stack:
        current, array = stack.pop()
        if current.id == field.id:
            return array
        inner = current if current.type is FieldType.ARRAY else array
        stack.extend((child, inner) for child in reversed(current.children))
    return None
