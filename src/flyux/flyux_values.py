"""
Runtime value protocol for FLYUX.

Every runtime value is a single piece of text. Composite values describe
themselves by their first character:

    array   [e0,e1,...]            elements are already-serialized text
    record  {"k0":v0,"k1":v1,...}  keys quoted, values raw serialized text

Elements are split on commas at bracket/brace depth zero only, so nested
composites survive a parse/serialize round trip. Record values are never
re-quoted; a stored string and a bare number look the same once inside a
record.

This module also owns the scalar rules shared by declaration, assignment and
arithmetic: type inference, type coercion, truthiness and number rendering.
"""

import math
import re
from decimal import Decimal

from flyux.flyux_constants import declared_types

_INT_RE = re.compile(r"[+-]?[0-9]+")


class FlyuxRuntimeError(RuntimeError):
    """Fatal error raised while evaluating a program."""


# Scalars


def parse_int(text: str) -> int | None:
    if _INT_RE.fullmatch(text):
        return int(text)
    return None


def parse_float(text: str) -> float | None:
    """Parse decimal or `inf`/`nan` text; surrounding whitespace and `_` are rejected."""
    if not text or text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def format_number(value: float) -> str:
    """Render a float the way the runtime prints numbers: `5`, `2.5`, `0.0000001`."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if value.is_integer():
        return text.split(".")[0]
    return text


def is_truthy(value: str) -> bool:
    """Only `0` and case-insensitive `false` are false."""
    return not (value == "0" or value.lower() == "false")


def infer_type(value: str) -> str:
    if parse_int(value) is not None:
        return "int"
    if parse_float(value) is not None:
        return "float"
    if value.lower() in ("true", "false"):
        return "bool"
    stripped = value.strip()
    if is_array(stripped) or is_record(stripped):
        return "obj"
    return "string"


def check_declared_type(type_name: str) -> None:
    if type_name not in declared_types:
        raise FlyuxRuntimeError(f"Unknown type '{type_name}'")


def coerce(value: str, type_name: str | None, bool_text: tuple[str, str] = ("true", "false")) -> str:
    """Normalize `value` for storage under `type_name`.

    Booleans are canonicalized to `bool_text` (true form, false form). Numbers are
    validated but kept in their original text. Strings lose one layer of double
    quotes if they have one. `obj` and untyped values pass through.

    Raises:
        FlyuxRuntimeError: If the value does not parse as `type_name`.
    """
    if type_name == "bool":
        normalized = value.strip('"').lower()
        if normalized in ("true", "1"):
            return bool_text[0]
        if normalized in ("false", "0"):
            return bool_text[1]
        raise FlyuxRuntimeError(f"Invalid boolean literal: '{value}'")
    if type_name == "int":
        if parse_int(value) is None:
            raise FlyuxRuntimeError(f"Invalid int literal: '{value}'")
        return value
    if type_name == "float":
        if parse_float(value) is None:
            raise FlyuxRuntimeError(f"Invalid float literal: '{value}'")
        return value
    if type_name == "string":
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            return value[1:-1]
        return value
    return value


# Composites


def is_array(text: str) -> bool:
    return text.startswith("[") and text.endswith("]")


def is_record(text: str) -> bool:
    return text.startswith("{") and text.endswith("}")


def split_top_level(inner: str) -> list[str]:
    """Split on commas outside any `[]`/`{}` nesting, trimming each piece."""
    pieces: list[str] = []
    depth = 0
    current = ""
    for ch in inner:
        if ch in "[{":
            depth += 1
        elif ch in "]}":
            depth -= 1
        elif ch == "," and depth == 0:
            pieces.append(current.strip())
            current = ""
            continue
        current += ch
    if current.strip():
        pieces.append(current.strip())
    return pieces


def parse_array(text: str) -> list[str]:
    stripped = text.strip()
    if not is_array(stripped):
        raise FlyuxRuntimeError(f"Not an array string: '{stripped}'")
    return split_top_level(stripped[1:-1])


def serialize_array(elements: list[str]) -> str:
    return "[" + ",".join(elements) + "]"


def parse_record(text: str) -> dict[str, str]:
    """Parse record text into key -> raw value text, keeping first-seen key order."""
    stripped = text.strip()
    if not is_record(stripped):
        raise FlyuxRuntimeError(f"Not an object string: '{stripped}'")
    fields: dict[str, str] = {}
    for entry in split_top_level(stripped[1:-1]):
        if ":" in entry:
            key, value = entry.split(":", 1)
            fields[key.strip().strip('"')] = value.strip()
    return fields


def serialize_record(fields: dict[str, str]) -> str:
    return "{" + ",".join(f'"{k}":{v}' for k, v in fields.items()) + "}"


def parse_index(key: str) -> int:
    idx = parse_int(key)
    if idx is None or idx < 0:
        raise FlyuxRuntimeError(f"Invalid index: '{key}'")
    return idx


def read_index(target: str, key: str) -> str:
    """`target[key]`: missing keys and out-of-range indexes read as empty text."""
    key = key.strip('"')
    if is_record(target):
        return parse_record(target).get(key, "")
    if is_array(target):
        idx = parse_index(key)
        elements = parse_array(target)
        return elements[idx] if idx < len(elements) else ""
    return ""


def read_property(target: str, name: str) -> str:
    """`target.name`: unlike `read_index`, a missing field is fatal."""
    if is_array(target) and name == "length":
        return str(len(parse_array(target)))
    if is_record(target):
        fields = parse_record(target)
        if name not in fields:
            raise FlyuxRuntimeError(f"Property '{name}' not found in object")
        return fields[name]
    raise FlyuxRuntimeError(f"Not an object: {target}")


def write_path(text: str, path: list[tuple[bool, str]], value: str) -> str:
    """Return `text` with the element at `path` replaced by `value`.

    Each path segment is `(is_index, key)`. Records accept both `.name` and
    `[key]` segments and insert a missing final key; arrays only accept in-range
    `[index]` segments. Intermediate segments must already exist.
    """
    is_index, key = path[0]
    rest = path[1:]
    stripped = text.strip()

    if is_record(stripped):
        fields = parse_record(stripped)
        if not rest:
            fields[key] = value
        elif key not in fields:
            raise FlyuxRuntimeError(f"Key '{key}' not found during nested assignment")
        else:
            fields[key] = write_path(fields[key], rest, value)
        return serialize_record(fields)

    if is_array(stripped):
        if not is_index:
            raise FlyuxRuntimeError(f"Cannot set property '{key}' on array")
        elements = parse_array(stripped)
        idx = parse_index(key)
        if idx >= len(elements):
            raise FlyuxRuntimeError(f"Index {idx} out of bounds for array of length {len(elements)}")
        elements[idx] = write_path(elements[idx], rest, value) if rest else value
        return serialize_array(elements)

    raise FlyuxRuntimeError(f"Not an object: {text}")
