"""Workflow triggers and the options each kind of trigger accepts."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Literal, Union, get_args

from ._common import from_json, key, parse_as, parse_each, to_json
from ._errors import StructuralError
from ._validation import (
    Json,
    Scalar,
    is_json_array,
    is_json_object,
    to_bool,
    to_choices,
    to_json_array,
    to_json_array_of_strings,
    to_json_object,
    to_scalar,
    to_string,
)

EventName = Literal[
    "push",
    "pull_request",
    "pull_request_target",
    "pull_request_review",
    "workflow_run",
    "workflow_dispatch",
    "workflow_call",
    "schedule",
    "repository_dispatch",
    "merge_group",
]

EVENT_NAMES: tuple[str, ...] = get_args(EventName)

_PULL_REQUEST_TYPES = (
    "assigned",
    "unassigned",
    "labeled",
    "unlabeled",
    "opened",
    "edited",
    "closed",
    "reopened",
    "synchronize",
    "converted_to_draft",
    "ready_for_review",
    "locked",
    "unlocked",
    "review_requested",
    "review_request_removed",
    "auto_merge_enabled",
    "auto_merge_disabled",
)

_strings = to_json_array_of_strings


def _one_of(choices: Sequence[str]):
    def parse(obj: object, location: str) -> str:
        value = to_string(obj, location)
        if value not in choices:
            raise StructuralError(
                f"Unexpected value '{value}' at '{location}',"
                f" expected one of: {', '.join(choices)}"
            )
        return value

    return parse


@dataclass(frozen=True, slots=True)
class PushOptions:
    """Filters for ``push``"""

    branches: list[str] | None = key("branches", _strings)
    branches_ignore: list[str] | None = key("branches-ignore", _strings)
    tags: list[str] | None = key("tags", _strings)
    tags_ignore: list[str] | None = key("tags-ignore", _strings)
    paths: list[str] | None = key("paths", _strings)
    paths_ignore: list[str] | None = key("paths-ignore", _strings)


@dataclass(frozen=True, slots=True)
class PullRequestOptions:
    """Filters for ``pull_request`` and ``pull_request_target``"""

    branches: list[str] | None = key("branches", _strings)
    branches_ignore: list[str] | None = key("branches-ignore", _strings)
    paths: list[str] | None = key("paths", _strings)
    paths_ignore: list[str] | None = key("paths-ignore", _strings)
    types: list[str] | None = key(
        "types", partial(to_choices, choices=_PULL_REQUEST_TYPES)
    )


@dataclass(frozen=True, slots=True)
class PullRequestReviewOptions:
    types: list[str] | None = key(
        "types", partial(to_choices, choices=("submitted", "edited", "dismissed"))
    )


@dataclass(frozen=True, slots=True)
class WorkflowRunOptions:
    workflows: list[str] | None = key("workflows", _strings)
    types: list[str] | None = key(
        "types", partial(to_choices, choices=("completed", "requested", "in_progress"))
    )
    branches: list[str] | None = key("branches", _strings)
    branches_ignore: list[str] | None = key("branches-ignore", _strings)


@dataclass(frozen=True, slots=True)
class WorkflowDispatchInput:
    """An input offered when a workflow is started by hand"""

    description: str = key("description", to_string, required=True)
    required: bool | None = key("required", to_bool)
    type: str | None = key(
        "type", _one_of(("string", "choice", "boolean", "number", "environment"))
    )
    options: list[str] | None = key("options", _strings)
    default: Scalar | None = key("default", to_scalar)

    def __post_init__(self):
        if self.options is not None and self.type != "choice":
            raise StructuralError(
                f"Input '{self.description}' lists options but is not of type 'choice'"
            )


@dataclass(frozen=True, slots=True)
class WorkflowDispatchOptions:
    inputs: Mapping[str, WorkflowDispatchInput] | None = key(
        "inputs", parse_each(parse_as(WorkflowDispatchInput))
    )


@dataclass(frozen=True, slots=True)
class WorkflowCallInput:
    type: str = key(
        "type", _one_of(("string", "boolean", "number")), required=True
    )
    description: str | None = key("description", to_string)
    required: bool | None = key("required", to_bool)
    default: Scalar | None = key("default", to_scalar)


@dataclass(frozen=True, slots=True)
class WorkflowCallSecret:
    description: str | None = key("description", to_string)
    required: bool | None = key("required", to_bool)


@dataclass(frozen=True, slots=True)
class WorkflowCallOutput:
    value: str = key("value", to_string, required=True)
    description: str | None = key("description", to_string)


@dataclass(frozen=True, slots=True)
class WorkflowCallOptions:
    """The interface of a reusable workflow"""

    inputs: Mapping[str, WorkflowCallInput] | None = key(
        "inputs", parse_each(parse_as(WorkflowCallInput))
    )
    outputs: Mapping[str, WorkflowCallOutput] | None = key(
        "outputs", parse_each(parse_as(WorkflowCallOutput))
    )
    secrets: Mapping[str, WorkflowCallSecret] | None = key(
        "secrets", parse_each(parse_as(WorkflowCallSecret))
    )


@dataclass(frozen=True, slots=True)
class ScheduleOptions:
    """Cron expressions, in the order they are written"""

    crons: tuple[str, ...]

    def __post_init__(self):
        if not self.crons:
            raise StructuralError("A schedule needs at least one cron expression")
        for i, cron in enumerate(self.crons):
            if not isinstance(cron, str) or not cron.strip():
                raise StructuralError(f"Expected a cron expression at 'schedule[{i}]'")

    def to_json(self) -> Json:
        return [{"cron": cron} for cron in self.crons]

    @classmethod
    def from_json(cls, obj: object, location: str) -> ScheduleOptions:
        """Accepts ``[{"cron": ...}, ...]`` or a list of cron strings"""
        crons = list[str]()
        for i, element in enumerate(to_json_array(obj, location)):
            if is_json_object(element):
                record = to_json_object(element, f"{location}[{i}]")
                if list(record) != ["cron"]:
                    raise StructuralError(
                        f"Expected only a 'cron' key at '{location}[{i}]'"
                    )
                crons.append(to_string(record["cron"], f"{location}[{i}].cron"))
            else:
                crons.append(to_string(element, f"{location}[{i}]"))
        return cls(tuple(crons))


@dataclass(frozen=True, slots=True)
class RepositoryDispatchOptions:
    types: list[str] | None = key("types", _strings)


@dataclass(frozen=True, slots=True)
class MergeGroupOptions:
    types: list[str] | None = key(
        "types", partial(to_choices, choices=("checks_requested",))
    )


EventOptions = Union[
    PushOptions,
    PullRequestOptions,
    PullRequestReviewOptions,
    WorkflowRunOptions,
    WorkflowDispatchOptions,
    WorkflowCallOptions,
    ScheduleOptions,
    RepositoryDispatchOptions,
    MergeGroupOptions,
]

_OPTIONS_TYPES: dict[str, type] = {
    "push": PushOptions,
    "pull_request": PullRequestOptions,
    "pull_request_target": PullRequestOptions,
    "pull_request_review": PullRequestReviewOptions,
    "workflow_run": WorkflowRunOptions,
    "workflow_dispatch": WorkflowDispatchOptions,
    "workflow_call": WorkflowCallOptions,
    "schedule": ScheduleOptions,
    "repository_dispatch": RepositoryDispatchOptions,
    "merge_group": MergeGroupOptions,
}

_OPTIONS = tuple(dict.fromkeys(_OPTIONS_TYPES.values()))


@dataclass(frozen=True, slots=True)
class Event:
    """A trigger of the workflow

    ``options`` must be the options class belonging to ``name``, or ``None``
    when the trigger is not filtered.
    """

    name: EventName
    options: EventOptions | None = None

    def __post_init__(self):
        if self.name not in _OPTIONS_TYPES:
            raise StructuralError(
                f"Unknown event '{self.name}', expected one of: {', '.join(EVENT_NAMES)}"
            )
        if self.name == "schedule" and self.options is None:
            raise StructuralError("The 'schedule' event needs cron expressions")
        expected = _OPTIONS_TYPES[self.name]
        if self.options is not None and not isinstance(self.options, expected):
            raise StructuralError(
                f"The '{self.name}' event takes {expected.__name__}"
                f" but was given {self.options.__class__.__name__}"
            )

    @classmethod
    def create(cls, name: str, options: object = None) -> Event:
        """Return an event, converting JSON-like options to the matching class

        Raises:
            StructuralError: if the options do not fit the event
        """
        options_type = _OPTIONS_TYPES.get(name)
        if options_type is None or options is None or isinstance(options, _OPTIONS):
            return cls(name, options)  # type: ignore
        location = f"on.{name}"
        if options_type is ScheduleOptions:
            return cls(name, ScheduleOptions.from_json(options, location))  # type: ignore
        if is_json_array(options):
            raise StructuralError(
                f"Expected an object at '{location}' but found {options.__class__.__name__}"
            )
        return cls(name, from_json(options_type, options, location))  # type: ignore

    def options_json(self) -> Json:
        """Return the options in the workflow schema, ``None`` when unfiltered"""
        match self.options:
            case None:
                return None
            case ScheduleOptions():
                return self.options.to_json()
            case _:
                return to_json(self.options)
