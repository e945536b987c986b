from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Union

from ._common import from_json, key
from ._errors import StructuralError
from ._validation import (
    Scalar,
    to_bool,
    to_int,
    to_json_object,
    to_mapping_of_scalars,
    to_mapping_of_strings,
    to_string,
)


@dataclass(frozen=True, slots=True, kw_only=True)
class BaseStep:
    """Fields shared by every kind of step"""

    id: str | None = key("id", to_string)
    name: str | None = key("name", to_string)
    if_expression: str | None = key("if", to_string)
    continue_on_error: bool | None = key("continue-on-error", to_bool)
    working_directory: str | None = key("working-directory", to_string)
    timeout: int | None = key("timeout-minutes", to_int)
    env: Mapping[str, str] | None = key("env", to_mapping_of_strings)


@dataclass(frozen=True, slots=True, kw_only=True)
class RunStep(BaseStep):
    """A shell command"""

    run: str = key("run", to_string, required=True)
    shell: str | None = key("shell", to_string)


@dataclass(frozen=True, slots=True, kw_only=True)
class UseStep(BaseStep):
    """An invocation of an action, ``owner/repo@version``"""

    uses: str = key("uses", to_string, required=True)
    with_: Mapping[str, Scalar] | None = key("with", to_mapping_of_scalars)

    def __post_init__(self):
        if not self.uses.strip():
            raise StructuralError("A step's 'uses' must not be empty")


Step = Union[RunStep, UseStep]


def to_step(obj: object, location: str) -> Step:
    """Return a step, converting a JSON object keyed like the workflow schema

    Raises:
        StructuralError: if it holds both or neither of ``run`` and ``uses``
    """
    if isinstance(obj, (RunStep, UseStep)):
        return obj
    if isinstance(obj, str):
        return RunStep(run=obj)

    step = to_json_object(obj, location)
    match ("run" in step, "uses" in step):
        case (True, True):
            raise StructuralError(f"Step at '{location}' has both 'run' and 'uses'")
        case (True, False):
            return from_json(RunStep, step, location)
        case (False, True):
            return from_json(UseStep, step, location)
        case _:
            raise StructuralError(f"Step at '{location}' needs either 'run' or 'uses'")
