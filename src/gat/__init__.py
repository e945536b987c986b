"""Write GitHub Actions workflows in Python and compile them to pinned YAML."""

from ._build import compile_workflow, compile_workflows, resolve_actions
from ._compiler import DEFAULT_RUNNER, DEFAULT_TIMEOUT_MINUTES, compile_document
from ._errors import (
    GatError,
    LockFileError,
    MissingLockEntry,
    ResolutionError,
    SerializationError,
    StructuralError,
    TagLookupError,
    TransientNetworkError,
    UnresolvableReference,
)
from ._event import (
    Event,
    MergeGroupOptions,
    PullRequestOptions,
    PullRequestReviewOptions,
    PushOptions,
    RepositoryDispatchOptions,
    ScheduleOptions,
    WorkflowCallInput,
    WorkflowCallOptions,
    WorkflowCallOutput,
    WorkflowCallSecret,
    WorkflowDispatchInput,
    WorkflowDispatchOptions,
    WorkflowRunOptions,
)
from ._github import GitHubTagLookup, Tag, TagLookup
from ._job import (
    ConcurrencyGroup,
    Matrix,
    RunnerGroup,
    Service,
    ServiceCredentials,
    StepsJob,
    UsesJob,
)
from ._pinning import ActionReference, ActionResolver, LockFile
from ._step import RunStep, UseStep
from ._workflow import DefaultOptions, Workflow
from ._yaml import render

__version__ = "0.1.0"

__all__ = [
    "ActionReference",
    "ActionResolver",
    "ConcurrencyGroup",
    "DEFAULT_RUNNER",
    "DEFAULT_TIMEOUT_MINUTES",
    "DefaultOptions",
    "Event",
    "GatError",
    "GitHubTagLookup",
    "LockFile",
    "LockFileError",
    "Matrix",
    "MergeGroupOptions",
    "MissingLockEntry",
    "PullRequestOptions",
    "PullRequestReviewOptions",
    "PushOptions",
    "RepositoryDispatchOptions",
    "ResolutionError",
    "RunStep",
    "RunnerGroup",
    "ScheduleOptions",
    "SerializationError",
    "Service",
    "ServiceCredentials",
    "StepsJob",
    "StructuralError",
    "Tag",
    "TagLookup",
    "TagLookupError",
    "TransientNetworkError",
    "UnresolvableReference",
    "UseStep",
    "UsesJob",
    "Workflow",
    "WorkflowCallInput",
    "WorkflowCallOptions",
    "WorkflowCallOutput",
    "WorkflowCallSecret",
    "WorkflowDispatchInput",
    "WorkflowDispatchOptions",
    "WorkflowRunOptions",
    "compile_document",
    "compile_workflow",
    "compile_workflows",
    "render",
    "resolve_actions",
]
