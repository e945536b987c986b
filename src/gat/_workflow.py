"""The chainable builder that assembles a workflow."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import TYPE_CHECKING, Final

from ._errors import StructuralError
from ._event import Event
from ._job import ConcurrencyGroup, Job, NamedJob, StepsJob, to_job
from ._step import UseStep

if TYPE_CHECKING:
    from ._github import TagLookup


class _Unset:
    """Marks a setting that was never configured, as opposed to one set to None"""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset()

_WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True, slots=True)
class DefaultOptions:
    working_directory: str


@dataclass(frozen=True, slots=True)
class EnvVar:
    name: str
    value: str


class Workflow:
    """A pipeline definition: triggers, jobs and shared configuration

    Every mutator records its change and returns the workflow so that calls
    can be chained::

        Workflow("Build").on("push", {"branches": ["main"]}).add_job(
            "test", {"steps": [{"run": "pytest"}]}
        )
    """

    def __init__(self, name: str):
        self.name = name
        self.events = list[Event]()
        self.jobs = list[NamedJob]()
        self.default_options: DefaultOptions | None = None
        self.env = list[EnvVar]()
        self.concurrency_group: ConcurrencyGroup | None | _Unset = UNSET

    def __repr__(self) -> str:
        return f"Workflow({self.name!r})"

    def on(self, name: str, options: object = None) -> Workflow:
        """Add a trigger, ``options`` is an options class or its JSON form"""
        self.events.append(Event.create(name, options))
        return self

    def add_defaults(
        self,
        options: DefaultOptions | None = None,
        *,
        working_directory: str | None = None,
    ) -> Workflow:
        if options is None:
            if working_directory is None:
                raise StructuralError("Defaults need a working directory")
            options = DefaultOptions(working_directory)
        self.default_options = options
        return self

    def add_job(self, name: str, options: Job | object) -> Workflow:
        """Add a job under ``name``

        Args:
            name: the job ID, unique within the workflow and free of whitespace
            options: a :class:`StepsJob`, a :class:`UsesJob`, or the JSON form of
                either; the presence of ``uses`` selects a reusable workflow job

        Raises:
            StructuralError: if the name is invalid or taken, or a job it
                depends on has not been added before it
        """
        location = f"jobs.{name}"
        if not name:
            raise StructuralError("Job names must not be empty")
        if _WHITESPACE.search(name):
            raise StructuralError(f"Job name '{name}' must not contain whitespace")
        if name in self.job_names():
            raise StructuralError(f"Duplicate job name '{name}'")

        job = to_job(options, location)

        declared = self.job_names()
        for need in job.depends_on:
            if need == name:
                raise StructuralError(f"Job '{name}' cannot depend on itself")
            if need not in declared:
                raise StructuralError(
                    f"Job '{name}' depends on '{need}'"
                    " which is not declared before it in the workflow"
                )

        self.jobs.append(NamedJob(name, job))
        return self

    def set_env(self, name: str, value: str) -> Workflow:
        self.env.append(EnvVar(name, value))
        return self

    def set_concurrency_group(
        self, concurrency_group: ConcurrencyGroup | None
    ) -> Workflow:
        """Set the workflow concurrency group, ``None`` turns concurrency control off"""
        self.concurrency_group = concurrency_group
        return self

    def job_names(self) -> list[str]:
        return [named.name for named in self.jobs]

    def use_steps(self) -> Iterator[UseStep]:
        for named in self.jobs:
            if isinstance(named.job, StepsJob):
                for step in named.job.steps:
                    if isinstance(step, UseStep):
                        yield step

    def action_references(self) -> list[str]:
        """Return the distinct action references of all steps, first use first"""
        return list(dict.fromkeys(step.uses for step in self.use_steps()))

    def compile(
        self,
        output_path: str | PathLike[str] | None = None,
        *,
        lock_file_path: str | PathLike[str] | None = None,
        allow_network_write: bool = False,
        tag_lookup: TagLookup | None = None,
        best_effort: bool = False,
    ) -> str | Path:
        """Compile to YAML, see :func:`gat.compile_workflow`"""
        # pylint: disable-next=import-outside-toplevel  # circular
        from ._build import compile_workflow

        return compile_workflow(
            self,
            output_path=output_path,
            lock_file_path=lock_file_path,
            allow_network_write=allow_network_write,
            tag_lookup=tag_lookup,
            best_effort=best_effort,
        )
