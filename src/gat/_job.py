from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Literal, Union

from ._common import from_json, key, parse_as, parse_each
from ._errors import StructuralError
from ._step import Step, to_step
from ._validation import (
    Scalar,
    is_json_array,
    to_int,
    to_json_array,
    to_json_array_of_strings,
    to_json_object,
    to_mapping_of_scalars,
    to_mapping_of_strings,
    to_scalar,
    to_string,
)


@dataclass(frozen=True, slots=True)
class ConcurrencyGroup:
    """A lane in which only one run may proceed at a time"""

    group_suffix: str
    cancel_previous: bool = False


@dataclass(frozen=True, slots=True)
class Matrix:
    """Named axes of values, plus extra combinations merged in verbatim

    Axes keep the order they are given in.
    """

    axes: Mapping[str, Sequence[Scalar]]
    include: Sequence[Mapping[str, Scalar]] | None = None

    def __post_init__(self):
        for axis, values in self.axes.items():
            for i, value in enumerate(to_json_array(values, f"matrix.{axis}")):
                to_scalar(value, f"matrix.{axis}[{i}]")
        for i, record in enumerate(self.include or ()):
            to_mapping_of_scalars(record, f"matrix.include[{i}]")


@dataclass(frozen=True, slots=True)
class RunnerGroup:
    """Runners selected by group and, optionally, labels"""

    group: str = key("group", to_string, required=True)
    labels: list[str] | None = key("labels", to_json_array_of_strings)


RunnerDefinition = Union[str, Sequence[str], RunnerGroup]


@dataclass(frozen=True, slots=True)
class ServiceCredentials:
    username: str = key("username", to_string, required=True)
    password: str = key("password", to_string, required=True)


@dataclass(frozen=True, slots=True)
class Service:
    """A service container started next to the job"""

    image: str = key("image", to_string, required=True)
    credentials: ServiceCredentials | None = key(
        "credentials", parse_as(ServiceCredentials)
    )
    env: Mapping[str, str] | None = key("env", to_mapping_of_strings)
    ports: list[str] | None = key("ports", to_json_array_of_strings)
    options: str | None = key("options", to_string)
    volumes: list[str] | None = key("volumes", to_json_array_of_strings)


@dataclass(frozen=True, slots=True, kw_only=True)
class StepsJob:
    """A job running an ordered sequence of steps on a runner"""

    steps: Sequence[Step]
    pretty_name: str | None = None
    permissions: Mapping[str, str] | str | None = None
    if_expression: str | None = None
    runs_on: RunnerDefinition | None = None
    timeout: int | None = None
    depends_on: Sequence[str] = ()
    services: Mapping[str, Service] | None = None
    env: Mapping[str, str] | None = None
    concurrency: ConcurrencyGroup | None = None
    matrix: Matrix | str | None = None
    outputs: Mapping[str, str] | None = None
    working_directory: str | None = None
    environment: str | None = None

    def __post_init__(self):
        if not self.steps:
            raise StructuralError("A job needs at least one step")


Secrets = Union[Mapping[str, str], Literal["inherit"]]


@dataclass(frozen=True, slots=True, kw_only=True)
class UsesJob:
    """A job delegating to a reusable workflow"""

    uses: str
    pretty_name: str | None = None
    if_expression: str | None = None
    depends_on: Sequence[str] = ()
    with_: Mapping[str, Scalar] | None = None
    secrets: Secrets | None = None
    environment: str | None = None

    def __post_init__(self):
        if isinstance(self.secrets, str) and self.secrets != "inherit":
            raise StructuralError(
                f"Job secrets must be a mapping or 'inherit', got '{self.secrets}'"
            )


Job = Union[StepsJob, UsesJob]


@dataclass(frozen=True, slots=True)
class NamedJob:
    """A job with the name it is declared under in the workflow"""

    name: str
    job: Job = field(repr=False)


def _to_runner(obj: object, location: str) -> RunnerDefinition:
    if isinstance(obj, (str, RunnerGroup)):
        return obj
    if is_json_array(obj):
        return to_json_array_of_strings(obj, location)
    return from_json(RunnerGroup, obj, location)


def _to_concurrency(obj: object, location: str) -> ConcurrencyGroup | None:
    if obj is None or isinstance(obj, ConcurrencyGroup):
        return obj
    raise StructuralError(
        f"Expected a ConcurrencyGroup at '{location}' but found {obj.__class__.__name__}"
    )


def _to_matrix(obj: object, location: str) -> Matrix | str:
    if isinstance(obj, (str, Matrix)):
        return obj
    matrix = dict(to_json_object(obj, location))
    include = matrix.pop("include", None)
    return Matrix(
        axes={
            axis: to_json_array(values, f"{location}.{axis}")
            for axis, values in matrix.items()
        },
        include=None
        if include is None
        else [
            to_mapping_of_scalars(record, f"{location}.include[{i}]")
            for i, record in enumerate(to_json_array(include, f"{location}.include"))
        ],
    )


def _to_permissions(obj: object, location: str) -> Mapping[str, str] | str:
    if isinstance(obj, str):
        return obj
    return to_mapping_of_strings(obj, location)


def _to_secrets(obj: object, location: str) -> Secrets:
    if obj == "inherit":
        return "inherit"
    return to_mapping_of_strings(obj, location)


_STEPS_JOB_KEYS: dict[str, tuple[str, object]] = {
    "steps": ("steps", None),
    "name": ("pretty_name", to_string),
    "permissions": ("permissions", _to_permissions),
    "if": ("if_expression", to_string),
    "runs-on": ("runs_on", _to_runner),
    "timeout-minutes": ("timeout", to_int),
    "needs": ("depends_on", to_json_array_of_strings),
    "services": ("services", parse_each(parse_as(Service))),
    "env": ("env", to_mapping_of_strings),
    "concurrency": ("concurrency", _to_concurrency),
    "matrix": ("matrix", _to_matrix),
    "outputs": ("outputs", to_mapping_of_strings),
    "working-directory": ("working_directory", to_string),
    "environment": ("environment", to_string),
}

_USES_JOB_KEYS: dict[str, tuple[str, object]] = {
    "uses": ("uses", to_string),
    "name": ("pretty_name", to_string),
    "if": ("if_expression", to_string),
    "needs": ("depends_on", to_json_array_of_strings),
    "with": ("with_", to_mapping_of_scalars),
    "secrets": ("secrets", _to_secrets),
    "environment": ("environment", to_string),
}


def to_job(obj: object, location: str) -> Job:
    """Return a job, converting a JSON object keyed like the workflow schema

    A ``uses`` key selects a reusable workflow job, otherwise it is a steps job.

    Raises:
        StructuralError: if a key is unknown or a value has the wrong type
    """
    if isinstance(obj, (StepsJob, UsesJob)):
        return obj

    job = to_json_object(obj, location)
    is_uses_job = "uses" in job
    keys = _USES_JOB_KEYS if is_uses_job else _STEPS_JOB_KEYS

    kwargs = dict[str, object]()
    for name, value in job.items():
        if name not in keys:
            kind = "reusable workflow job" if is_uses_job else "steps job"
            raise StructuralError(f"Unknown key '{name}' for a {kind} at '{location}'")
        attribute, parse = keys[name]
        if name == "steps":
            kwargs[attribute] = [
                to_step(step, f"{location}.steps[{i}]")
                for i, step in enumerate(to_json_array(value, f"{location}.steps"))
            ]
        else:
            kwargs[attribute] = parse(value, f"{location}.{name}")  # type: ignore

    if is_uses_job:
        return UsesJob(**kwargs)  # type: ignore
    if "steps" not in kwargs:
        raise StructuralError(f"Job at '{location}' needs either 'steps' or 'uses'")
    return StepsJob(**kwargs)  # type: ignore

