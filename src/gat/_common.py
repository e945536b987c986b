from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from ._errors import StructuralError
from ._validation import Json, check_keys, to_json_object

_T = TypeVar("_T")

Parser = Callable[[object, str], object]


def key(
    name: str, parse: Parser, *, default: object = None, required: bool = False
) -> Any:
    """Declare a dataclass field stored under ``name`` in the workflow schema

    Args:
        name: the key used in the generated YAML
        parse: converts and checks a raw JSON value, given its location
        default: the value when the key is absent
        required: whether the key must be present

    Returns:
        a dataclass field
    """
    metadata = {"key": name, "parse": parse}
    if required:
        return dataclasses.field(metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


def schema_keys(cls: type) -> list[str]:
    """Return the schema keys of a dataclass declared with :func:`key`"""
    return [f.metadata["key"] for f in dataclasses.fields(cls) if "key" in f.metadata]


def from_json(cls: type[_T], obj: object, location: str) -> _T:
    """Build a dataclass from a JSON object written with schema keys

    Raises:
        StructuralError: if a key is unknown, missing or has the wrong type
    """
    mapping = to_json_object(obj, location)
    check_keys(mapping, schema_keys(cls), location)

    kwargs = dict[str, object]()
    for field in dataclasses.fields(cls):  # type: ignore
        if "key" not in field.metadata:
            continue
        name = field.metadata["key"]
        if name in mapping:
            kwargs[field.name] = field.metadata["parse"](
                mapping[name], f"{location}.{name}"
            )
        elif field.default is dataclasses.MISSING:
            raise StructuralError(f"Missing required key '{name}' at '{location}'")

    return cls(**kwargs)


def to_json(obj: object) -> Json:
    """Return the schema form of a value, leaving out absent dataclass fields"""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            field.metadata["key"]: to_json(value)
            for field in dataclasses.fields(obj)
            if "key" in field.metadata
            and (value := getattr(obj, field.name)) is not None
        }
    if isinstance(obj, Mapping):
        return {k: to_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_json(element) for element in obj]
    return obj  # type: ignore


def parse_each(parse: Parser) -> Parser:
    """Return a parser for a JSON object whose values are parsed with ``parse``"""

    def parse_mapping(obj: object, location: str) -> dict[str, object]:
        mapping = to_json_object(obj, location)
        return {k: parse(v, f"{location}.{k}") for k, v in mapping.items()}

    return parse_mapping


def parse_as(cls: type) -> Parser:
    """Return a parser for a nested dataclass, accepting an instance as is"""

    def parse(obj: object, location: str) -> object:
        if isinstance(obj, cls):
            return obj
        return from_json(cls, obj, location)

    return parse
