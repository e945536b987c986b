from __future__ import annotations

import io
from collections.abc import Mapping

import ruamel.yaml
from ruamel.yaml.representer import RoundTripRepresenter
from ruamel.yaml.scalarstring import LiteralScalarString

from ._errors import SerializationError

BANNER = (
    "# Workflow automatically generated by gat\n"
    "# DO NOT CHANGE THIS FILE MANUALLY\n"
    "\n"
)

LINE_WIDTH = 200


class NonAliasingRTRepresenter(RoundTripRepresenter):
    """Removes aliases because they're not supported by github"""

    def ignore_aliases(self, data: object):
        return True

    def represent_none(self, data: None):
        # An event without options has to read as an explicit null
        return self.represent_scalar("tag:yaml.org,2002:null", "null")


NonAliasingRTRepresenter.add_representer(
    type(None), NonAliasingRTRepresenter.represent_none
)


def _prepare(obj: object, location: str) -> object:
    """Return a copy of the document ready to be dumped

    Strings spanning several lines become literal block scalars.

    Raises:
        SerializationError: if a value cannot be represented in the workflow
    """
    match obj:
        case str():
            return LiteralScalarString(obj) if "\n" in obj else obj
        case bool() | int() | float() | None:
            return obj
        case Mapping():
            result = dict[str, object]()
            for k, v in obj.items():
                if not isinstance(k, str):
                    raise SerializationError(
                        f"Expected a string key at '{location}'"
                        f" but found {k.__class__.__name__}"
                    )
                result[k] = _prepare(v, f"{location}.{k}" if location else k)
            return result
        case list() | tuple():
            return [_prepare(e, f"{location}[{i}]") for i, e in enumerate(obj)]
        case _:
            raise SerializationError(
                f"Cannot represent {obj.__class__.__name__} at '{location}'"
            )


def _yaml() -> ruamel.yaml.YAML:
    yaml = ruamel.yaml.YAML()
    yaml.Representer = NonAliasingRTRepresenter
    yaml.width = LINE_WIDTH
    yaml.indent(mapping=2, sequence=4, offset=2)
    return yaml


def render(document: Mapping[str, object]) -> str:
    """Return the workflow file for a compiled document, banner first"""
    stream = io.StringIO()
    _yaml().dump(_prepare(document, ""), stream)  # type: ignore
    return BANNER + stream.getvalue()
