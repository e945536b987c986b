from __future__ import annotations

from collections.abc import Collection, Mapping
from typing import TypeGuard

from ._errors import StructuralError

Json = int | float | bool | str | None | list["Json"] | dict[str, "Json"]

Scalar = str | int | float | bool


def is_json_object(obj: object) -> TypeGuard[Mapping[str, Json]]:
    """Checks if an object is a JSON object (YAML associative array)"""
    return isinstance(obj, Mapping)


def to_json_object(obj: object, location: str) -> Mapping[str, Json]:
    """Checks if an object is a JSON object (YAML associative array)

    Args:
        obj: the object to check
        location: location of the object to use in exception message

    Returns:
        the same object

    Raises:
        StructuralError: if it's not a JSON object
    """
    if is_json_object(obj):
        for key in obj:
            if not isinstance(key, str):
                raise StructuralError(
                    f"Expected string keys at '{location}'"
                    f" but found {key.__class__.__name__}"
                )
        return obj
    raise StructuralError(
        f"Expected an object at '{location}' but found {obj.__class__.__name__}"
    )


def is_json_array(obj: object) -> TypeGuard[list[Json]]:
    """Checks if an object is a JSON array"""
    return isinstance(obj, (list, tuple))


def to_json_array(obj: object, location: str) -> list[Json]:
    """Checks if an object is a JSON array

    Args:
        obj: the object to check
        location: location of the object to use in exception message

    Returns:
        the elements as a list

    Raises:
        StructuralError: if it's not a JSON array
    """
    if is_json_array(obj):
        return list(obj)
    raise StructuralError(
        f"Expected an array at '{location}' but found {obj.__class__.__name__}"
    )


def to_json_array_of_strings(obj: object, location: str) -> list[str]:
    """Checks if an object is a JSON array or strings

    Args:
        obj: the object to check
        location: location of the object to use in exception message

    Returns:
        the elements as a list

    Raises:
        StructuralError: if it's not a JSON array of strings
    """
    array = to_json_array(obj, location)
    for i, element in enumerate(array):
        if not isinstance(element, str):
            raise StructuralError(
                f"Expected a string at '{location}[{i}]'"
                f" but found {element.__class__.__name__}"
            )

    return array  # type: ignore


def to_string(obj: object, location: str) -> str:
    """Checks if an object is a JSON string

    Args:
        obj: the object to check
        location: location of the object to use in exception message

    Returns:
        the same object

    Raises:
        StructuralError: if it's not a JSON string
    """
    if isinstance(obj, str):
        return obj
    raise StructuralError(
        f"Expected a string at '{location}' but found {obj.__class__.__name__}"
    )


def to_bool(obj: object, location: str) -> bool:
    """Checks if an object is a JSON boolean"""
    if isinstance(obj, bool):
        return obj
    raise StructuralError(
        f"Expected a boolean at '{location}' but found {obj.__class__.__name__}"
    )


def to_int(obj: object, location: str) -> int:
    """Checks if an object is a JSON integer (booleans excluded)"""
    if isinstance(obj, int) and not isinstance(obj, bool):
        return obj
    raise StructuralError(
        f"Expected an integer at '{location}' but found {obj.__class__.__name__}"
    )


def to_scalar(obj: object, location: str) -> Scalar:
    """Checks if an object is a string, number or boolean"""
    if isinstance(obj, (str, int, float, bool)):
        return obj
    raise StructuralError(
        f"Expected a scalar at '{location}' but found {obj.__class__.__name__}"
    )


def to_mapping_of_strings(obj: object, location: str) -> dict[str, str]:
    """Checks if an object is a JSON object whose values are all strings"""
    mapping = to_json_object(obj, location)
    return {key: to_string(value, f"{location}.{key}") for key, value in mapping.items()}


def to_mapping_of_scalars(obj: object, location: str) -> dict[str, Scalar]:
    """Checks if an object is a JSON object whose values are all scalars"""
    mapping = to_json_object(obj, location)
    return {key: to_scalar(value, f"{location}.{key}") for key, value in mapping.items()}


def to_choices(obj: object, location: str, choices: Collection[str]) -> list[str]:
    """Checks if an object is a JSON array of strings taken from ``choices``"""
    array = to_json_array_of_strings(obj, location)
    for i, element in enumerate(array):
        if element not in choices:
            raise StructuralError(
                f"Unexpected value '{element}' at '{location}[{i}]',"
                f" expected one of: {', '.join(sorted(choices))}"
            )
    return array


def check_keys(obj: Mapping[str, object], allowed: Collection[str], location: str):
    """Checks that a JSON object only holds keys from ``allowed``

    Raises:
        StructuralError: naming the first unknown key
    """
    for key in obj:
        if key not in allowed:
            raise StructuralError(
                f"Unknown key '{key}' at '{location}',"
                f" expected one of: {', '.join(allowed)}"
            )
